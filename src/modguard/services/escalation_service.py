"""Escalation evaluation service.

Per (community, actor) warning counter with a cool-down between automatic
punishments:

    NORMAL --warning 1..n-1--> WARNED --warning n, cool-down elapsed--> MUTED --> NORMAL

``WARNED`` is just ``warning_count > 0``. ``MUTED`` is the moment the
timeout is decided; the counter drops back to zero and the action time is
remembered.

Design goals:
 - Pure function core (``evaluate_warning``) for easy unit testing.
 - Service wrapper that serializes each actor through its own lock and
   writes through to an optional repository (``load_all`` / ``save``).
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Optional, Protocol, Tuple, Iterable

from ..domain.moderation.window import KeyedLocks
from ..infrastructure.logging.structured_logging import info as log_info, error as log_error


@dataclass
class EscalationState:
    community_id: int
    actor_id: int
    warning_count: int = 0
    last_auto_action_ms: Optional[int] = None


@dataclass(frozen=True)
class EscalationDecision:
    warning_count: int
    mute: bool


class _EscalationRepo(Protocol):  # minimal structural typing for DB
    def load_all(self) -> Iterable[EscalationState]: ...
    def save(self, state: EscalationState) -> None: ...


def cooldown_elapsed(last_auto_action_ms: Optional[int], now: int, cooldown_ms: int) -> bool:
    if last_auto_action_ms is None:
        return True
    return now - last_auto_action_ms >= cooldown_ms


def evaluate_warning(state: EscalationState, now: int, warnings_before_mute: int, cooldown_ms: int) -> EscalationDecision:
    """Return the decision for one more warning against ``state`` (state is not modified)."""
    count = state.warning_count + 1
    mute = count >= warnings_before_mute and cooldown_elapsed(state.last_auto_action_ms, now, cooldown_ms)
    return EscalationDecision(warning_count=count, mute=mute)


class EscalationService:
    def __init__(self, repository: Optional[_EscalationRepo] = None, locks: Optional[KeyedLocks] = None):
        self._repo = repository
        self._locks = locks if locks is not None else KeyedLocks()
        self._states: Dict[Tuple[int, int], EscalationState] = {}

    def load(self) -> int:
        """Read persisted states once at start. Returns the number loaded."""
        if self._repo is None:
            return 0
        for state in self._repo.load_all():
            self._states[(state.community_id, state.actor_id)] = state
        log_info("escalation.loaded", count=len(self._states))
        return len(self._states)

    def _get_or_create(self, community_id: int, actor_id: int) -> EscalationState:
        key = (community_id, actor_id)
        state = self._states.get(key)
        if state is None:
            state = self._states[key] = EscalationState(community_id, actor_id)
        return state

    async def register_warning(self, community_id: int, actor_id: int, now: int,
                               warnings_before_mute: int = 3, cooldown_ms: int = 60_000) -> EscalationDecision:
        async with self._locks.lock_for((community_id, actor_id)):
            state = self._get_or_create(community_id, actor_id)
            decision = evaluate_warning(state, now, warnings_before_mute, cooldown_ms)
            if decision.mute:
                state.warning_count = 0
                state.last_auto_action_ms = now
                log_info("escalation.mute", community_id=community_id, actor_id=actor_id, warnings=decision.warning_count)
            else:
                state.warning_count = decision.warning_count
            self._persist(state)
            return decision

    def state_for(self, community_id: int, actor_id: int) -> EscalationState:
        state = self._states.get((community_id, actor_id))
        if state is None:
            return EscalationState(community_id, actor_id)
        return replace(state)

    def _persist(self, state: EscalationState):
        if self._repo is None:
            return
        try:
            self._repo.save(state)
        except Exception as e:  # noqa: BLE001
            log_error("escalation.persist_failed", community_id=state.community_id, actor_id=state.actor_id, error=str(e))

    def __len__(self) -> int:
        return len(self._states)


__all__ = [
    'EscalationState', 'EscalationDecision', 'EscalationService',
    'evaluate_warning', 'cooldown_elapsed',
]
