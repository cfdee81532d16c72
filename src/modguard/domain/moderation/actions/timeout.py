from __future__ import annotations
from .registry import register
from .base import ModerationAction, TIMEOUT

DEFAULT_TIMEOUT_MS = 5 * 60 * 1000


class TimeoutAction:
    def can_handle(self, kind: str) -> bool:
        return kind == TIMEOUT
    async def execute(self, platform, action: ModerationAction) -> None:
        duration = action.duration_ms or DEFAULT_TIMEOUT_MS
        await platform.apply_timeout(action.community_id, action.actor_id, duration, action.reason)

register(TimeoutAction())
__all__ = ["TimeoutAction", "DEFAULT_TIMEOUT_MS"]
