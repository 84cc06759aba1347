"""Exceptions that cross the conversation-turn boundary.

Plan validation problems are not exceptions: they are returned as
``Violation`` records and folded back into the clarifying conversation.
Only failures the core cannot recover from locally are raised.
"""
from __future__ import annotations


class StoaError(Exception):
    """Base class for errors raised by the planner core."""


class UpstreamFailure(StoaError):
    """The model call or the session/plan store failed for this turn.

    The session is left in its last committed state, so the caller may retry
    the same turn.
    """

    def __init__(self, operation: str, message: str | None = None) -> None:
        self.operation = operation
        super().__init__(message or f"{operation} failed")


class AuthenticationMissing(StoaError):
    """No user identity is available for a store operation."""

    def __init__(self, message: str = "User must be authenticated.") -> None:
        super().__init__(message)


def require_user_id(user_id: str | None) -> str:
    """Return a usable user id or raise AuthenticationMissing."""
    if user_id is None or not str(user_id).strip():
        raise AuthenticationMissing()
    return str(user_id).strip()
