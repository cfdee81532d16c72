from __future__ import annotations
from .registry import register
from .base import ModerationAction, DELETE_MESSAGE


class DeleteMessageAction:
    def can_handle(self, kind: str) -> bool:
        return kind == DELETE_MESSAGE
    async def execute(self, platform, action: ModerationAction) -> None:
        await platform.delete_message(action.channel_id, action.message_id)

register(DeleteMessageAction())
__all__ = ["DeleteMessageAction"]
