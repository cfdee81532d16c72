"""Mass-join detection.

On every join, independently:
 - entry gate: strip roles beyond the base role pending verification;
 - raid: the join that brings the community's window to
   ``join_burst_count`` emits one high-priority audit record (no automatic
   kick or ban);
 - new account: accounts younger than ``new_account_age_threshold_ms``
   emit an informational audit record when auto-mod is on.
The raid and new-account records are not deduplicated against each other.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .actions import ActionExecutor, ModerationAction
from .audit import raid_payload, new_account_payload, audit_action
from .events import MemberJoinEvent, JoinRecord
from .window import SlidingWindowTracker
from ..policy.models import ModerationPolicy
from ...infrastructure.logging.structured_logging import info as log_info, warning as log_warning


@dataclass
class RaidVerdict:
    raid: bool = False
    new_account: bool = False
    roles_stripped: List[int] = field(default_factory=list)


def gated_roles(event: MemberJoinEvent, base_role_id: Optional[int]) -> List[int]:
    # The platform's base role shares the community id unless overridden.
    base = base_role_id if base_role_id is not None else event.community_id
    return [r for r in event.current_role_ids if r != base]


class RaidDetector:
    def __init__(self, executor: ActionExecutor, tracker: Optional[SlidingWindowTracker] = None):
        self.executor = executor
        self.tracker = tracker if tracker is not None else SlidingWindowTracker("joins", clamp_late=True)

    async def check(self, policy: ModerationPolicy, event: MemberJoinEvent) -> RaidVerdict:
        verdict = RaidVerdict()
        t = policy.thresholds

        if policy.features.entry_gate:
            roles = gated_roles(event, policy.base_role_id)
            if roles:
                self.executor.submit(ModerationAction.remove_roles(
                    event.community_id, event.actor_id, roles, "entry gate: pending verification",
                ))
                verdict.roles_stripped = roles

        if policy.raid_active:
            snap = await self.tracker.record(
                event.community_id, JoinRecord.from_event(event), t.join_burst_window_ms, t.join_burst_count,
            )
            if snap.crossed:
                verdict.raid = True
                recent = [r.actor_id for r in snap.records[-t.raid_recent_joins_listed:]]
                log_warning("raid.detected", community_id=event.community_id, joins=snap.count, window_ms=t.join_burst_window_ms)
                audit = audit_action(policy, raid_payload(snap.count, t.join_burst_window_ms, recent), "raid detected")
                if audit is not None:
                    self.executor.submit(audit)

        if policy.features.auto_mod and event.account_age_ms < t.new_account_age_threshold_ms:
            verdict.new_account = True
            log_info("raid.new_account", community_id=event.community_id, actor_id=event.actor_id, age_ms=event.account_age_ms)
            audit = audit_action(
                policy,
                new_account_payload(event.actor_id, event.account_age_ms, event.account_created_at),
                "new account joined",
                actor_id=event.actor_id,
            )
            if audit is not None:
                self.executor.submit(audit)
        return verdict


__all__ = ["RaidDetector", "RaidVerdict", "gated_roles"]
