"""Import action modules to populate registry on package import."""
from .registry import list_actions, register, find_handler  # re-export
from . import delete_message, notice, timeout, remove_roles, audit  # noqa: F401
from .base import (
    ModerationAction,
    ActionResult,
    DELETE_MESSAGE,
    TRANSIENT_NOTICE,
    TIMEOUT,
    REMOVE_ROLES,
    AUDIT,
)
from .job_queue import ActionQueue
from .runner import ActionExecutor

__all__ = [
    'list_actions', 'register', 'find_handler', 'ActionExecutor', 'ActionQueue',
    'ModerationAction', 'ActionResult',
    'DELETE_MESSAGE', 'TRANSIENT_NOTICE', 'TIMEOUT', 'REMOVE_ROLES', 'AUDIT',
]
