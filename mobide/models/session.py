"""Session data model.

Session represents one live terminal container.
- 1 Session = 1 Container = 1 attached terminal stream
- Many client connections may share it
- Held in memory only; the workspace directory is the sole durable state
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from mobide.drivers.base import TerminalStream
    from mobide.services.terminal.connection import Connection


class SessionStatus(str, Enum):
    """Session lifecycle status."""

    RUNNING = "running"
    STOPPED = "stopped"


AuthSignalType = Literal["url", "code"]


@dataclass(frozen=True, slots=True)
class AuthSignal:
    """A URL or device code seen in terminal output."""

    type: AuthSignalType
    value: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type, "value": self.value}


@dataclass(frozen=True, slots=True)
class AuthState:
    """Latest detected auth signals. Values are replaced, never cleared."""

    url: str | None = None
    code: str | None = None

    def with_signal(self, signal: AuthSignal) -> "AuthState":
        if signal.type == "url":
            return AuthState(url=signal.value, code=self.code)
        return AuthState(url=self.url, code=signal.value)

    def to_dict(self) -> dict[str, str | None]:
        return {"url": self.url, "code": self.code}


@dataclass(frozen=True, slots=True)
class TerminalHandle:
    """Container and its attached stream. Only valid as a pair."""

    container_id: str
    stream: "TerminalStream"


def _utf8_decoder() -> codecs.IncrementalDecoder:
    return codecs.getincrementaldecoder("utf-8")(errors="replace")


@dataclass(eq=False)
class Session:
    """Live session record."""

    id: str
    workspace_path: Path
    container_id: str | None = None
    stream: "TerminalStream | None" = None
    connections: set["Connection"] = field(default_factory=set)
    last_active_at: float = 0.0
    auth: AuthState = field(default_factory=AuthState)
    status: SessionStatus = SessionStatus.RUNNING
    decoder: codecs.IncrementalDecoder = field(default_factory=_utf8_decoder, repr=False)

    @property
    def is_live(self) -> bool:
        return (
            self.status == SessionStatus.RUNNING
            and self.container_id is not None
            and self.stream is not None
        )

    @property
    def handle(self) -> TerminalHandle | None:
        if self.container_id is None or self.stream is None:
            return None
        return TerminalHandle(container_id=self.container_id, stream=self.stream)

    def bind(self, handle: TerminalHandle) -> None:
        self.container_id = handle.container_id
        self.stream = handle.stream
        self.status = SessionStatus.RUNNING

    def release(self) -> TerminalHandle | None:
        """Detach the container/stream pair from the record and mark it stopped."""
        handle = self.handle
        self.container_id = None
        self.stream = None
        self.status = SessionStatus.STOPPED
        return handle

    def touch(self, now: float) -> None:
        self.last_active_at = now

    def idle_for(self, now: float) -> float:
        return now - self.last_active_at
