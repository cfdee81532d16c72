"""Policy formatting utilities."""
from __future__ import annotations

from typing import List
from .models import ModerationPolicy, PolicyBook
from ...utils.format_utils import format_duration_ms


def format_policy(policy: ModerationPolicy, detail: bool = False) -> str:
    f = policy.features
    t = policy.thresholds
    on = [name for name, value in f.model_dump().items() if value]
    lines: List[str] = [
        f"community: {policy.community_id}",
        f"features: {', '.join(on) or '(none)'}",
        f"burst: {t.message_burst_count} msgs / {format_duration_ms(t.message_burst_window_ms)}",
        f"raid: {t.join_burst_count} joins / {format_duration_ms(t.join_burst_window_ms)}",
        f"mute: warning #{t.warnings_before_mute} -> {format_duration_ms(t.mute_duration_ms)}"
        f" (cooldown {format_duration_ms(t.mute_cooldown_ms)})",
        f"audit channel: {policy.audit_channel_id or '(none)'}",
    ]
    if detail:
        lines.append(f"duplicates: {t.duplicate_repeat_count} of last {t.duplicate_history_size}")
        lines.append(f"new account: < {format_duration_ms(t.new_account_age_threshold_ms)}")
        lines.append(f"filtered terms: {len(policy.filtered_terms)}")
        if policy.exempt_role_names:
            lines.append(f"exempt roles: {', '.join(policy.exempt_role_names)}")
    return "\n".join(lines)


def format_book(book: PolicyBook) -> str:
    if not book.communities:
        return "(no community overrides)"
    return "\n\n".join(format_policy(book.policy_for(cid)) for cid in sorted(book.communities))

__all__ = ['format_policy', 'format_book']
