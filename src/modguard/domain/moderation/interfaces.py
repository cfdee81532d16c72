"""Public behavioral contracts for the engine's collaborators."""
from __future__ import annotations

from typing import Any, Dict, Hashable, Iterable, Optional, Protocol, runtime_checkable

from ..policy.models import ModerationPolicy


@runtime_checkable
class ModerationPlatform(Protocol):
    """Abstract outputs realized by a platform adapter.

    Implementations raise ``TransientActionError`` for platform-side failures.
    """
    async def delete_message(self, channel_id: int, message_id: int) -> None: ...
    async def post_transient_notice(self, channel_id: int, text: str, auto_delete_after_ms: int) -> None: ...
    async def apply_timeout(self, community_id: int, actor_id: int, duration_ms: int, reason: str) -> None: ...
    async def remove_roles(self, community_id: int, actor_id: int, role_ids: Iterable[int]) -> None: ...
    async def emit_audit_record(self, community_id: int, audit_channel_id: Optional[int], payload: Dict[str, Any]) -> None: ...


@runtime_checkable
class PolicyProvider(Protocol):
    def get_policy(self, community_id: int) -> ModerationPolicy: ...


@runtime_checkable
class Action(Protocol):
    def can_handle(self, kind: str) -> bool: ...  # noqa: D401,E701
    async def execute(self, platform: ModerationPlatform, action) -> None: ...


class WindowStore(Protocol):
    """Get-or-create access to sliding logs keyed by community or (community, actor)."""
    def get_or_create(self, key: Hashable): ...
    def get(self, key: Hashable): ...
    def reset(self, key: Hashable) -> None: ...
    def evict_stale(self, now: int, max_age_ms: int) -> int: ...
    def __len__(self) -> int: ...

__all__ = ["ModerationPlatform", "PolicyProvider", "Action", "WindowStore"]
