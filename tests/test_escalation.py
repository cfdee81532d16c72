"""Escalation state machine and its sqlite persistence."""

import asyncio

import pytest

from modguard.infrastructure.persistence.db_core import ModerationDB
from modguard.services.escalation_service import (
    EscalationService,
    EscalationState,
    cooldown_elapsed,
    evaluate_warning,
)


def test_cooldown_never_acted_is_elapsed():
    assert cooldown_elapsed(None, 0, 60_000)
    assert not cooldown_elapsed(1000, 60_999, 60_000)
    assert cooldown_elapsed(1000, 61_000, 60_000)


def test_evaluate_warning_is_pure():
    state = EscalationState(1, 2, warning_count=2)
    decision = evaluate_warning(state, 5000, 3, 60_000)
    assert decision.warning_count == 3
    assert decision.mute is True
    assert state.warning_count == 2


@pytest.mark.asyncio
async def test_mute_on_third_warning_then_reset():
    svc = EscalationService()
    decisions = [await svc.register_warning(1, 2, ts) for ts in (0, 1000, 2000)]
    assert [(d.warning_count, d.mute) for d in decisions] == [(1, False), (2, False), (3, True)]
    state = svc.state_for(1, 2)
    assert state.warning_count == 0
    assert state.last_auto_action_ms == 2000


@pytest.mark.asyncio
async def test_counter_keeps_growing_during_cooldown():
    svc = EscalationService()
    for ts in (0, 1, 2):
        await svc.register_warning(1, 2, ts)
    decisions = [await svc.register_warning(1, 2, ts) for ts in (10, 20, 30, 40)]
    assert [d.mute for d in decisions] == [False, False, False, False]
    assert svc.state_for(1, 2).warning_count == 4

    late = await svc.register_warning(1, 2, 60_002)
    assert late.mute is True
    assert late.warning_count == 5


@pytest.mark.asyncio
async def test_actors_and_communities_are_separate():
    svc = EscalationService()
    await svc.register_warning(1, 2, 0)
    await svc.register_warning(1, 3, 0)
    await svc.register_warning(9, 2, 0)
    assert svc.state_for(1, 2).warning_count == 1
    assert svc.state_for(9, 2).warning_count == 1
    assert len(svc) == 3


@pytest.mark.asyncio
async def test_concurrent_warnings_are_serialized():
    svc = EscalationService()
    decisions = await asyncio.gather(*(svc.register_warning(1, 2, 0, warnings_before_mute=100) for _ in range(50)))
    assert sorted(d.warning_count for d in decisions) == list(range(1, 51))


@pytest.mark.asyncio
async def test_state_for_returns_copy():
    svc = EscalationService()
    await svc.register_warning(1, 2, 0)
    copy = svc.state_for(1, 2)
    copy.warning_count = 99
    assert svc.state_for(1, 2).warning_count == 1


@pytest.mark.asyncio
async def test_persisted_state_survives_reload():
    db = ModerationDB(":memory:")
    try:
        svc = EscalationService(repository=db.escalations)
        for ts in (0, 1000, 2000, 3000):
            await svc.register_warning(1, 2, ts)

        restored = EscalationService(repository=db.escalations)
        assert restored.load() == 1
        state = restored.state_for(1, 2)
        assert state.warning_count == 1
        assert state.last_auto_action_ms == 2000
    finally:
        db.close()


@pytest.mark.asyncio
async def test_persist_failure_does_not_raise():
    class Broken:
        def load_all(self):
            return []

        def save(self, state):
            raise RuntimeError("disk full")

    svc = EscalationService(repository=Broken())
    decision = await svc.register_warning(1, 2, 0)
    assert decision.warning_count == 1

