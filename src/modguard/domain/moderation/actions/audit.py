from __future__ import annotations
from .registry import register
from .base import ModerationAction, AUDIT


class AuditRecordAction:
    def can_handle(self, kind: str) -> bool:
        return kind == AUDIT
    async def execute(self, platform, action: ModerationAction) -> None:
        await platform.emit_audit_record(action.community_id, action.audit_channel_id, dict(action.payload))

register(AuditRecordAction())
__all__ = ["AuditRecordAction"]
