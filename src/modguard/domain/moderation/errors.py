"""Moderation error taxonomy.

None of these escape the engine's public entry points: action failures are
reported through ``ActionResult`` and event failures through the outcome
objects.
"""
from __future__ import annotations


class ModerationError(Exception):
    """Base class for engine errors."""


class TransientActionError(ModerationError):
    """A side effect failed for a platform-side reason (target gone, missing permission)."""

    def __init__(self, action: str, reason: str):
        super().__init__(f"{action}: {reason}")
        self.action = action
        self.reason = reason


class PolicyUnavailable(ModerationError):
    """The policy provider could not produce a policy for a community."""

    def __init__(self, community_id: int, cause: Exception | None = None):
        super().__init__(f"policy unavailable for community {community_id}: {cause}")
        self.community_id = community_id
        self.cause = cause


class InternalInvariantViolation(ModerationError):
    """Engine state broke one of its own guarantees (e.g. a log went out of order)."""


class UnknownActionError(ModerationError):
    """No handler is registered for an action kind."""


__all__ = [
    "ModerationError",
    "TransientActionError",
    "PolicyUnavailable",
    "InternalInvariantViolation",
    "UnknownActionError",
]
