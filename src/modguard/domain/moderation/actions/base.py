"""Action value objects shared by handlers and the executor."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

DELETE_MESSAGE = "delete_message"
TRANSIENT_NOTICE = "transient_notice"
TIMEOUT = "timeout"
REMOVE_ROLES = "remove_roles"
AUDIT = "audit"


@dataclass(frozen=True)
class ModerationAction:
    kind: str
    community_id: int
    reason: str
    actor_id: Optional[int] = None
    channel_id: Optional[int] = None
    message_id: Optional[int] = None
    text: Optional[str] = None
    duration_ms: Optional[int] = None
    delete_after_ms: Optional[int] = None
    role_ids: Tuple[int, ...] = ()
    audit_channel_id: Optional[int] = None
    payload: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def delete(cls, community_id: int, channel_id: int, message_id: int, reason: str, actor_id: Optional[int] = None):
        return cls(DELETE_MESSAGE, community_id, reason, actor_id=actor_id, channel_id=channel_id, message_id=message_id)

    @classmethod
    def notice(cls, community_id: int, channel_id: int, text: str, delete_after_ms: int, reason: str, actor_id: Optional[int] = None):
        return cls(
            TRANSIENT_NOTICE, community_id, reason,
            actor_id=actor_id, channel_id=channel_id, text=text, delete_after_ms=delete_after_ms,
        )

    @classmethod
    def timeout(cls, community_id: int, actor_id: int, duration_ms: int, reason: str):
        return cls(TIMEOUT, community_id, reason, actor_id=actor_id, duration_ms=duration_ms)

    @classmethod
    def remove_roles(cls, community_id: int, actor_id: int, role_ids, reason: str):
        return cls(REMOVE_ROLES, community_id, reason, actor_id=actor_id, role_ids=tuple(role_ids))

    @classmethod
    def audit(cls, community_id: int, audit_channel_id: Optional[int], payload: Dict[str, Any], reason: str, actor_id: Optional[int] = None):
        return cls(AUDIT, community_id, reason, actor_id=actor_id, audit_channel_id=audit_channel_id, payload=payload)


@dataclass(frozen=True)
class ActionResult:
    kind: str
    ok: bool
    error: Optional[str] = None


__all__ = [
    "ModerationAction",
    "ActionResult",
    "DELETE_MESSAGE",
    "TRANSIENT_NOTICE",
    "TIMEOUT",
    "REMOVE_ROLES",
    "AUDIT",
]
