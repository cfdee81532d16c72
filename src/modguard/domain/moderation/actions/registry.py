"""Handler registry keyed by action kind.

Handler modules register an instance at import time; lookups resolve the
first handler whose ``can_handle`` accepts the kind and memoize it.
"""
from __future__ import annotations

from typing import Dict, List, Optional
from ..interfaces import Action

_HANDLERS: List[Action] = []
_RESOLVED: Dict[str, Action] = {}


def register(handler: Action):
    if handler in _HANDLERS:
        return
    _HANDLERS.append(handler)
    _RESOLVED.clear()


def list_actions() -> List[Action]:
    return list(_HANDLERS)


def find_handler(kind: str) -> Optional[Action]:
    key = kind.strip().lower()
    handler = _RESOLVED.get(key)
    if handler is None:
        handler = next((h for h in _HANDLERS if h.can_handle(key)), None)
        if handler is not None:
            _RESOLVED[key] = handler
    return handler

__all__ = ["register", "list_actions", "find_handler"]
