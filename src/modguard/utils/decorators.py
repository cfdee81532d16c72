"""Decorator utilities."""
from __future__ import annotations
from typing import Callable, Awaitable, Any, TypeVar
from functools import wraps
import discord

from ..domain.moderation.errors import TransientActionError


F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def platform_action(action: str):
    """Map discord.py failures of the wrapped coroutine to ``TransientActionError``."""
    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except discord.NotFound as e:
                raise TransientActionError(action, "not_found") from e
            except discord.Forbidden as e:
                raise TransientActionError(action, "forbidden") from e
            except discord.HTTPException as e:
                raise TransientActionError(action, f"http_{getattr(e, 'status', 'error')}") from e
        return wrapper  # type: ignore[return-value]
    return decorator

__all__ = ["platform_action"]
