"""Inbound event shapes, window records and per-event outcomes."""
from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

CONTENT_PREFIX_LEN = 140


def content_hash(text: str) -> str:
    return hashlib.sha1((text or "").encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class MessageEvent:
    community_id: int
    actor_id: int
    channel_id: int
    message_id: Optional[int]  # None when the caller has no platform message id
    text: str
    actor_is_moderator: bool
    timestamp: int  # epoch ms


@dataclass(frozen=True)
class MemberJoinEvent:
    community_id: int
    actor_id: int
    account_created_at: int  # epoch ms
    current_role_ids: Tuple[int, ...]
    timestamp: int  # epoch ms

    @property
    def account_age_ms(self) -> int:
        return max(0, self.timestamp - self.account_created_at)


@dataclass(frozen=True)
class MessageRecord:
    timestamp: int
    channel_id: int
    message_id: Optional[int]
    content_hash: str
    content_prefix: str

    @classmethod
    def from_event(cls, event: MessageEvent) -> "MessageRecord":
        return cls(
            timestamp=event.timestamp,
            channel_id=event.channel_id,
            message_id=event.message_id,
            content_hash=content_hash(event.text),
            content_prefix=(event.text or "")[:CONTENT_PREFIX_LEN],
        )


@dataclass(frozen=True)
class JoinRecord:
    timestamp: int
    actor_id: int
    account_age_ms: int

    @classmethod
    def from_event(cls, event: MemberJoinEvent) -> "JoinRecord":
        return cls(timestamp=event.timestamp, actor_id=event.actor_id, account_age_ms=event.account_age_ms)


@dataclass
class MessageOutcome:
    verdicts: List[str] = field(default_factory=list)
    warning_count: Optional[int] = None
    muted: bool = False
    skipped: Optional[str] = None
    error: Optional[str] = None

    @property
    def flagged(self) -> bool:
        return bool(self.verdicts)


@dataclass
class JoinOutcome:
    raid: bool = False
    new_account: bool = False
    roles_stripped: List[int] = field(default_factory=list)
    skipped: Optional[str] = None
    error: Optional[str] = None


__all__ = [
    "MessageEvent",
    "MemberJoinEvent",
    "MessageRecord",
    "JoinRecord",
    "MessageOutcome",
    "JoinOutcome",
    "content_hash",
    "CONTENT_PREFIX_LEN",
]
