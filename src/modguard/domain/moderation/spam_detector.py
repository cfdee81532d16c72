"""Message burst and duplicate-flood detection.

Both triggers read the per-(community, actor) message window:

1. Burst: the append that brings the window to ``message_burst_count``
   classifies the burst. The actor's recent messages in that channel are
   deleted, a warning is counted and announced, and on the configured
   warning (cool-down permitting) a timeout is applied and audited.
2. Duplicate flood: ``duplicate_repeat_count`` identical messages among the
   last ``duplicate_history_size`` in the window delete the triggering
   message with a short notice. No warning, no escalation.

Moderators never reach the window, so their activity never fills it.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .actions import ActionExecutor, ModerationAction
from .audit import spam_timeout_payload, audit_action
from .events import MessageEvent, MessageRecord
from .window import SlidingWindowTracker
from ..policy.models import ModerationPolicy
from ...services.escalation_service import EscalationService
from ...infrastructure.logging.structured_logging import info as log_info

BURST = "burst"
DUPLICATE = "duplicate"


@dataclass
class SpamVerdict:
    burst: bool = False
    duplicate: bool = False
    warning_count: Optional[int] = None
    muted: bool = False
    deleted: int = 0


def is_duplicate_flood(records: Sequence[MessageRecord], content_hash: str, history_size: int, repeat_count: int) -> bool:
    recent = list(records)[-history_size:]
    return sum(1 for r in recent if r.content_hash == content_hash) >= repeat_count


def burst_deletions(records: Sequence[MessageRecord], channel_id: int, limit: int) -> List[MessageRecord]:
    """Most recent ``limit`` windowed records posted in ``channel_id``."""
    in_channel = [r for r in records if r.channel_id == channel_id and r.message_id is not None]
    return in_channel[-limit:]


class SpamDetector:
    def __init__(self, executor: ActionExecutor, escalation: EscalationService, tracker: Optional[SlidingWindowTracker] = None):
        self.executor = executor
        self.escalation = escalation
        self.tracker = tracker if tracker is not None else SlidingWindowTracker("messages")

    async def check(self, policy: ModerationPolicy, event: MessageEvent) -> SpamVerdict:
        verdict = SpamVerdict()
        if event.actor_is_moderator or not policy.spam_active:
            return verdict
        t = policy.thresholds
        record = MessageRecord.from_event(event)
        snap = await self.tracker.record(
            (event.community_id, event.actor_id), record, t.message_burst_window_ms, t.message_burst_count,
        )
        if snap.crossed:
            verdict.burst = True
            await self._handle_burst(policy, event, snap.records, verdict)
        if event.text and is_duplicate_flood(snap.records, record.content_hash, t.duplicate_history_size, t.duplicate_repeat_count):
            verdict.duplicate = True
            self._handle_duplicate(policy, event)
        return verdict

    async def _handle_burst(self, policy: ModerationPolicy, event: MessageEvent, records, verdict: SpamVerdict):
        t = policy.thresholds
        targets = burst_deletions(records, event.channel_id, t.message_burst_count)
        for r in targets:
            self.executor.submit(ModerationAction.delete(
                event.community_id, r.channel_id, r.message_id, "spam: message burst", actor_id=event.actor_id,
            ))
        verdict.deleted = len(targets)

        decision = await self.escalation.register_warning(
            event.community_id, event.actor_id, event.timestamp,
            warnings_before_mute=t.warnings_before_mute, cooldown_ms=t.mute_cooldown_ms,
        )
        verdict.warning_count = decision.warning_count
        log_info(
            "spam.burst",
            community_id=event.community_id,
            actor_id=event.actor_id,
            channel_id=event.channel_id,
            warning=decision.warning_count,
            mute=decision.mute,
        )
        self.executor.submit(ModerationAction.notice(
            event.community_id,
            event.channel_id,
            f"<@{event.actor_id}>, please slow down! You're sending messages too quickly. "
            f"Warning {decision.warning_count}/{t.warnings_before_mute}",
            t.burst_notice_delete_after_ms,
            "spam: burst warning",
            actor_id=event.actor_id,
        ))
        if not decision.mute:
            return

        verdict.muted = True
        reason = "Auto-mod: Spam detection"
        minutes = max(1, t.mute_duration_ms // 60_000)
        self.executor.submit(ModerationAction.timeout(event.community_id, event.actor_id, t.mute_duration_ms, reason))
        self.executor.submit(ModerationAction.notice(
            event.community_id,
            event.channel_id,
            f"<@{event.actor_id}> has been timed out for {minutes} minute(s) due to spam.",
            t.burst_notice_delete_after_ms,
            "spam: timeout announcement",
            actor_id=event.actor_id,
        ))
        audit = audit_action(
            policy,
            spam_timeout_payload(event.actor_id, t.mute_duration_ms, t.message_burst_count, t.message_burst_window_ms),
            reason,
            actor_id=event.actor_id,
        )
        if audit is not None:
            self.executor.submit(audit)

    def _handle_duplicate(self, policy: ModerationPolicy, event: MessageEvent):
        log_info("spam.duplicate", community_id=event.community_id, actor_id=event.actor_id, channel_id=event.channel_id)
        if event.message_id is not None:
            self.executor.submit(ModerationAction.delete(
                event.community_id, event.channel_id, event.message_id, "spam: duplicate message", actor_id=event.actor_id,
            ))
        self.executor.submit(ModerationAction.notice(
            event.community_id,
            event.channel_id,
            f"<@{event.actor_id}>, please stop repeating the same message!",
            policy.thresholds.notice_delete_after_ms,
            "spam: duplicate notice",
            actor_id=event.actor_id,
        ))


__all__ = ["SpamDetector", "SpamVerdict", "is_duplicate_flood", "burst_deletions", "BURST", "DUPLICATE"]
