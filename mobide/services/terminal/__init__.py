"""Terminal session registry and client connections."""

from mobide.services.terminal.connection import Connection, WebSocketConnection
from mobide.services.terminal.registry import SessionRegistry

__all__ = ["Connection", "SessionRegistry", "WebSocketConnection"]
