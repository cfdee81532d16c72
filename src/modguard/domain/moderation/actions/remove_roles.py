from __future__ import annotations
from .registry import register
from .base import ModerationAction, REMOVE_ROLES


class RemoveRolesAction:
    def can_handle(self, kind: str) -> bool:
        return kind == REMOVE_ROLES
    async def execute(self, platform, action: ModerationAction) -> None:
        if not action.role_ids:
            return
        await platform.remove_roles(action.community_id, action.actor_id, list(action.role_ids))

register(RemoveRolesAction())
__all__ = ["RemoveRolesAction"]
