"""Moderation pipeline orchestrator.

High-level responsibilities, per inbound event:
 1. Look up the community policy (a failing provider disables moderation
    for that event only).
 2. Run the stateless content filter and enforce its matches.
 3. Feed the spam detector (messages) or raid detector (joins).
 4. Return an outcome; side effects are queued and never awaited here.

This keeps platform event handlers thin. Integration layer supplies the
policy provider and the platform adapter; everything else has in-memory
defaults and can be injected for tests.
"""
from __future__ import annotations

from typing import Iterable, Optional

from ..domain.moderation.actions import ActionExecutor, ActionQueue, ModerationAction
from ..domain.moderation.audit import filtered_content_payload, audit_action
from ..domain.moderation.content_filter import FilterMatch, evaluate_content, notice_for
from ..domain.moderation.errors import PolicyUnavailable
from ..domain.moderation.events import (
    MessageEvent,
    MemberJoinEvent,
    MessageOutcome,
    JoinOutcome,
)
from ..domain.moderation.interfaces import ModerationPlatform, PolicyProvider
from ..domain.moderation.raid_detector import RaidDetector
from ..domain.moderation.spam_detector import SpamDetector, BURST, DUPLICATE
from ..domain.moderation.window import SlidingWindowTracker
from ..domain.policy.models import ModerationPolicy
from .escalation_service import EscalationService
from ..infrastructure.logging.structured_logging import (
    info as log_info,
    warning as log_warning,
    debug as log_debug,
    error as log_error,
)


class ModerationEngine:
    def __init__(
        self,
        policy_provider: PolicyProvider,
        platform: Optional[ModerationPlatform] = None,
        *,
        executor: Optional[ActionExecutor] = None,
        escalation: Optional[EscalationService] = None,
        message_tracker: Optional[SlidingWindowTracker] = None,
        join_tracker: Optional[SlidingWindowTracker] = None,
    ):
        if executor is None:
            if platform is None:
                raise ValueError("either a platform or an executor is required")
            executor = ActionExecutor(platform)
        self.policy_provider = policy_provider
        self.executor = executor
        self.escalation = escalation if escalation is not None else EscalationService()
        self.spam = SpamDetector(executor, self.escalation, message_tracker)
        self.raid = RaidDetector(executor, join_tracker)

    @classmethod
    def build(cls, policy_provider: PolicyProvider, platform: ModerationPlatform, db=None,
              workers: int = 4, queue_size: int = 1000) -> "ModerationEngine":
        """Wire an engine with optional sqlite persistence (``ModerationDB``)."""
        executor = ActionExecutor(
            platform,
            repository=db.actions if db is not None else None,
            queue=ActionQueue(workers=workers, maxsize=queue_size),
        )
        escalation = EscalationService(repository=db.escalations if db is not None else None)
        escalation.load()
        return cls(policy_provider, executor=executor, escalation=escalation)

    def policy_for(self, community_id: int) -> ModerationPolicy:
        try:
            policy = self.policy_provider.get_policy(community_id)
            if policy is None:
                raise PolicyUnavailable(community_id)
            return policy
        except Exception as e:  # noqa: BLE001
            err = e if isinstance(e, PolicyUnavailable) else PolicyUnavailable(community_id, e)
            log_warning("policy.unavailable", community_id=community_id, error=str(err))
            return ModerationPolicy.disabled(community_id)

    # Message path -----------------------------------------------------

    async def on_message(self, community_id: int, actor_id: int, channel_id: int, text: str,
                         actor_has_moderation_capability: bool, timestamp: int,
                         message_id: Optional[int] = None) -> MessageOutcome:
        return await self.handle_message(MessageEvent(
            community_id=community_id,
            actor_id=actor_id,
            channel_id=channel_id,
            message_id=message_id,
            text=text or "",
            actor_is_moderator=actor_has_moderation_capability,
            timestamp=timestamp,
        ))

    async def handle_message(self, event: MessageEvent) -> MessageOutcome:
        outcome = MessageOutcome()
        try:
            if event.actor_is_moderator:
                log_debug("message.skip_exempt", community_id=event.community_id, actor_id=event.actor_id)
                outcome.skipped = "moderator"
                return outcome
            policy = self.policy_for(event.community_id)
            if not policy.automod_active:
                outcome.skipped = "disabled"
                return outcome

            for match in evaluate_content(policy, event.text):
                self._enforce_filter(policy, event, match)
                outcome.verdicts.append(match.kind)

            spam = await self.spam.check(policy, event)
            if spam.burst:
                outcome.verdicts.append(BURST)
                outcome.warning_count = spam.warning_count
                outcome.muted = spam.muted
            if spam.duplicate:
                outcome.verdicts.append(DUPLICATE)
            if not outcome.verdicts:
                log_debug("moderation.no_match", community_id=event.community_id, actor_id=event.actor_id)
        except Exception as e:  # noqa: BLE001
            log_error("engine.on_message.error", community_id=event.community_id, actor_id=event.actor_id, error=str(e))
            outcome.error = str(e)
        return outcome

    def _enforce_filter(self, policy: ModerationPolicy, event: MessageEvent, match: FilterMatch):
        log_info(
            "filter.match",
            kind=match.kind,
            community_id=event.community_id,
            actor_id=event.actor_id,
            channel_id=event.channel_id,
        )
        reason = f"filter: {match.kind}"
        if event.message_id is not None:
            self.executor.submit(ModerationAction.delete(
                event.community_id, event.channel_id, event.message_id, reason, actor_id=event.actor_id,
            ))
        self.executor.submit(ModerationAction.notice(
            event.community_id,
            event.channel_id,
            notice_for(match.kind, event.actor_id),
            policy.thresholds.notice_delete_after_ms,
            reason,
            actor_id=event.actor_id,
        ))
        if match.audit:
            audit = audit_action(
                policy,
                filtered_content_payload(match.kind, event.actor_id, event.channel_id, event.text),
                reason,
                actor_id=event.actor_id,
            )
            if audit is not None:
                self.executor.submit(audit)

    # Join path --------------------------------------------------------

    async def on_member_join(self, community_id: int, actor_id: int, account_created_at: int,
                             current_role_ids: Iterable[int], timestamp: int) -> JoinOutcome:
        return await self.handle_member_join(MemberJoinEvent(
            community_id=community_id,
            actor_id=actor_id,
            account_created_at=account_created_at,
            current_role_ids=tuple(current_role_ids or ()),
            timestamp=timestamp,
        ))

    async def handle_member_join(self, event: MemberJoinEvent) -> JoinOutcome:
        outcome = JoinOutcome()
        try:
            policy = self.policy_for(event.community_id)
            verdict = await self.raid.check(policy, event)
            outcome.raid = verdict.raid
            outcome.new_account = verdict.new_account
            outcome.roles_stripped = verdict.roles_stripped
        except Exception as e:  # noqa: BLE001
            log_error("engine.on_member_join.error", community_id=event.community_id, actor_id=event.actor_id, error=str(e))
            outcome.error = str(e)
        return outcome

    # Lifecycle --------------------------------------------------------

    def sweep(self, now: int, idle_ms: int = 10 * 60 * 1000) -> int:
        """Evict window logs idle for ``idle_ms``. Correctness never depends on this."""
        removed = self.spam.tracker.store.evict_stale(now, idle_ms) + self.raid.tracker.store.evict_stale(now, idle_ms)
        if removed:
            log_debug("engine.sweep", removed=removed)
        return removed

    async def drain(self):
        await self.executor.drain()

    async def close(self):
        await self.executor.close()


__all__ = ['ModerationEngine']
