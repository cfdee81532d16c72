from __future__ import annotations
from .registry import register
from .base import ModerationAction, TRANSIENT_NOTICE

DEFAULT_NOTICE_DELETE_AFTER_MS = 3000


class TransientNoticeAction:
    def can_handle(self, kind: str) -> bool:
        return kind == TRANSIENT_NOTICE
    async def execute(self, platform, action: ModerationAction) -> None:
        delay = action.delete_after_ms or DEFAULT_NOTICE_DELETE_AFTER_MS
        await platform.post_transient_notice(action.channel_id, action.text or "", delay)

register(TransientNoticeAction())
__all__ = ["TransientNoticeAction", "DEFAULT_NOTICE_DELETE_AFTER_MS"]
