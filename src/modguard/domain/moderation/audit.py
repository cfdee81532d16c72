"""Structured audit payloads.

Payloads are plain dicts so any platform adapter can render them. Keys:
``kind``, ``title``, ``severity`` (``high`` or ``normal``), ``description``,
``fields`` (list of ``{name, value, inline}``), ``footer`` and
``mention_moderators``.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from ...utils.format_utils import truncate, format_age_days
from ...infrastructure.logging.structured_logging import debug as log_debug
from .actions.base import ModerationAction

SEVERITY_HIGH = "high"
SEVERITY_NORMAL = "normal"

RAID_CHECKLIST = (
    "• Enable the verification gate\n"
    "• Temporarily disable invites\n"
    "• Monitor new members\n"
    "• Kick or ban manually if necessary"
)


def _field(name: str, value: Any, inline: bool = True) -> Dict[str, Any]:
    return {"name": name, "value": str(value), "inline": inline}


def _payload(kind: str, title: str, severity: str, fields: List[Dict[str, Any]], description: Optional[str] = None,
             footer: Optional[str] = None, mention_moderators: bool = False) -> Dict[str, Any]:
    return {
        "kind": kind,
        "title": title,
        "severity": severity,
        "description": description,
        "fields": fields,
        "footer": footer,
        "mention_moderators": mention_moderators,
    }


def spam_timeout_payload(actor_id: int, duration_ms: int, burst_count: int, window_ms: int) -> Dict[str, Any]:
    minutes = max(1, duration_ms // 60_000)
    return _payload(
        "spam_timeout",
        "Auto-Mod: Spam Detection",
        SEVERITY_NORMAL,
        [
            _field("User", f"<@{actor_id}> ({actor_id})"),
            _field("Action", f"Timed out for {minutes} minute(s)"),
            _field("Reason", f"Spam detection ({burst_count}+ messages in {window_ms // 1000} seconds)", inline=False),
        ],
    )


def filtered_content_payload(kind: str, actor_id: int, channel_id: int, excerpt: str) -> Dict[str, Any]:
    titles = {
        "filtered_term": "Filtered Term Removed",
        "invite_link": "Invite Link Blocked",
        "bare_link": "Link Removed",
    }
    fields = [
        _field("User", f"<@{actor_id}> ({actor_id})"),
        _field("Channel", f"<#{channel_id}>"),
    ]
    if kind == "filtered_term":
        fields.append(_field("Message", f"||{truncate(excerpt, 100)}||", inline=False))
    return _payload(kind, titles.get(kind, "Content Removed"), SEVERITY_NORMAL, fields)


def raid_payload(join_count: int, window_ms: int, recent_actor_ids: Iterable[int]) -> Dict[str, Any]:
    mentions = ", ".join(f"<@{a}>" for a in recent_actor_ids) or "n/a"
    return _payload(
        "raid",
        "Raid Detection Alert",
        SEVERITY_HIGH,
        [
            _field("Recent Joins", mentions, inline=False),
            _field("Recommended Actions", RAID_CHECKLIST, inline=False),
        ],
        description=f"Detected {join_count} members joining within {window_ms // 1000} seconds!",
        footer="Auto-detected by the security system",
        mention_moderators=True,
    )


def new_account_payload(actor_id: int, account_age_ms: int, account_created_at: int) -> Dict[str, Any]:
    return _payload(
        "new_account",
        "New Account Alert",
        SEVERITY_NORMAL,
        [
            _field("User", f"<@{actor_id}>"),
            _field("Account Age", format_age_days(account_age_ms)),
            _field("Created", f"<t:{account_created_at // 1000}:R>"),
        ],
        description=f"<@{actor_id}> just joined with a new account",
    )


def audit_action(policy, payload: Dict[str, Any], reason: str, actor_id: Optional[int] = None):
    """Build the audit action for ``policy``, or ``None`` when it has no audit destination."""
    if policy.audit_channel_id is None:
        log_debug("audit.no_destination", community_id=policy.community_id, kind=payload.get("kind"))
        return None
    return ModerationAction.audit(policy.community_id, policy.audit_channel_id, payload, reason, actor_id=actor_id)


__all__ = [
    "audit_action",
    "spam_timeout_payload",
    "filtered_content_payload",
    "raid_payload",
    "new_account_payload",
    "RAID_CHECKLIST",
    "SEVERITY_HIGH",
    "SEVERITY_NORMAL",
]
