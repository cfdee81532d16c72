"""ActionExecutor: the only path from a classification to a side effect.

``apply`` runs one action through its registered handler and converts every
failure into an ``ActionResult``; nothing raises past it. ``submit`` hands
the same call to the ``ActionQueue`` so detection never waits on the
platform. When an action repository is attached every attempt is recorded.
"""
from __future__ import annotations

from typing import Optional

from .base import ModerationAction, ActionResult
from .job_queue import ActionQueue
from .registry import find_handler
from ..errors import TransientActionError, UnknownActionError
from ..interfaces import ModerationPlatform
from ....infrastructure.logging.structured_logging import (
    info as log_info,
    warning as log_warning,
    error as log_error,
)


class ActionExecutor:
    def __init__(self, platform: ModerationPlatform, repository=None, queue: Optional[ActionQueue] = None):
        # side-effect: importing handler modules ensures registry population
        from . import delete_message, notice, timeout, remove_roles, audit  # noqa: F401  # pylint: disable=unused-import
        self.platform = platform
        self.repository = repository
        self.queue = queue if queue is not None else ActionQueue()

    async def apply(self, action: ModerationAction) -> ActionResult:
        try:
            handler = find_handler(action.kind)
            if handler is None:
                raise UnknownActionError(action.kind)
            await handler.execute(self.platform, action)
            log_info(
                f"action.{action.kind}",
                community_id=action.community_id,
                actor_id=action.actor_id,
                reason=action.reason,
            )
            result = ActionResult(action.kind, True)
        except UnknownActionError:
            log_warning("action.unknown", kind=action.kind)
            result = ActionResult(action.kind, False, "unknown_action")
        except TransientActionError as e:
            log_warning(f"action.{action.kind}.failed", community_id=action.community_id, actor_id=action.actor_id, reason=e.reason)
            result = ActionResult(action.kind, False, e.reason)
        except Exception as e:  # noqa: BLE001
            log_error(f"action.{action.kind}.error", community_id=action.community_id, actor_id=action.actor_id, error=str(e))
            result = ActionResult(action.kind, False, "exception")
        self._record(action, result)
        return result

    def submit(self, action: ModerationAction) -> bool:
        return self.queue.submit(lambda: self.apply(action))

    def _record(self, action: ModerationAction, result: ActionResult):
        if self.repository is None:
            return
        try:
            self.repository.log_action(
                action.community_id,
                action.channel_id,
                action.kind,
                action.actor_id,
                action.reason,
                evidence={"message_id": action.message_id, "duration_ms": action.duration_ms},
                status="success" if result.ok else "failure",
                failure_reason=result.error,
            )
        except Exception as e:  # noqa: BLE001
            log_error("action.record_failed", kind=action.kind, error=str(e))

    async def drain(self):
        await self.queue.drain()

    async def close(self):
        await self.queue.close()


__all__ = ["ActionExecutor"]
