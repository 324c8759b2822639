"""In-memory data models."""

from mobide.models.session import (
    AuthSignal,
    AuthState,
    Session,
    SessionStatus,
    TerminalHandle,
)

__all__ = [
    "AuthSignal",
    "AuthState",
    "Session",
    "SessionStatus",
    "TerminalHandle",
]
