"""SessionRegistry - live terminal sessions and their I/O fan-out.

State per session id:

    (no workspace) -> workspace only -> live(container, stream, connections) -> stopped

A stopped record is dropped. A later attach with the same id provisions a
fresh container; only the workspace contents carry over.

Concurrency:
- Per-session ``KeyedLocks`` serialize provisioning and eviction, so slow
  container I/O for one session never blocks another.
- Connection-set, activity and auth-state updates contain no await points
  and are atomic with respect to the event loop.
- Exactly one reader task per live session consumes the container stream
  and fans chunks out in production order.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from mobide.concurrency import KeyedLocks
from mobide.models.session import Session

if TYPE_CHECKING:
    from mobide.managers.session import SessionManager
    from mobide.managers.workspace import WorkspaceManager
    from mobide.models.session import TerminalHandle
    from mobide.services.auth_signals import AuthSignalDetector
    from mobide.services.terminal.connection import Connection

logger = structlog.get_logger()


class SessionRegistry:
    """Owns live sessions, their attached connections and output readers."""

    def __init__(
        self,
        session_manager: "SessionManager",
        workspaces: "WorkspaceManager",
        detector: "AuthSignalDetector",
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._manager = session_manager
        self._workspaces = workspaces
        self._detector = detector
        self._clock = clock
        self._log = logger.bind(service="session_registry")

        self._sessions: dict[str, Session] = {}
        self._readers: dict[str, asyncio.Task[None]] = {}
        self._locks = KeyedLocks()

    # -- lookup --

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def sessions(self) -> list[Session]:
        """Snapshot of live sessions."""
        return list(self._sessions.values())

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    @property
    def clock(self) -> Callable[[], float]:
        return self._clock

    # -- connection lifecycle --

    async def attach(self, session_id: str, connection: "Connection") -> Session:
        """Attach ``connection`` to the session, provisioning it if needed.

        The connection immediately receives the session's current
        ``auth-state``.

        Raises:
            InvalidSessionError: Session id escapes the workspaces root
            ImageUnavailableError: Terminal image could not be obtained
            ContainerIOError: Container could not be started
        """
        async with self._locks.hold(session_id):
            session = self._sessions.get(session_id)
            if session is None or not session.is_live:
                session = await self._provision(session_id)

            session.connections.add(connection)
            session.touch(self._clock())
            connection.send("auth-state", session.auth.to_dict())

        self._log.info(
            "session.attached",
            session_id=session_id,
            connection_id=connection.id,
            connections=len(session.connections),
        )
        return session

    async def _provision(self, session_id: str) -> Session:
        handle = await self._manager.provision(session_id)

        session = Session(
            id=session_id,
            workspace_path=self._workspaces.path_for(session_id),
            last_active_at=self._clock(),
        )
        session.bind(handle)
        self._sessions[session_id] = session
        self._readers[session_id] = asyncio.create_task(
            self._read_output(session),
            name=f"terminal-reader-{session_id}",
        )
        return session

    def detach(self, session_id: str, connection: "Connection") -> None:
        """Remove ``connection``. Never stops the container."""
        session = self._sessions.get(session_id)
        if session is None:
            return
        session.connections.discard(connection)
        session.touch(self._clock())
        self._log.info(
            "session.detached",
            session_id=session_id,
            connection_id=connection.id,
            connections=len(session.connections),
        )

    # -- client events --

    async def input(self, session_id: str, data: str | bytes) -> None:
        """Write client keystrokes to the container terminal."""
        session = self._sessions.get(session_id)
        if session is None or session.stream is None:
            return
        if isinstance(data, str):
            data = data.encode("utf-8")
        session.touch(self._clock())
        try:
            await session.stream.write(data)
        except Exception as e:
            self._log.warning("session.input_failed", session_id=session_id, error=str(e))

    async def resize(self, session_id: str, cols: Any, rows: Any) -> None:
        """Resize the container terminal. Invalid sizes are ignored."""
        if not _positive_int(cols) or not _positive_int(rows):
            return
        session = self._sessions.get(session_id)
        if session is None:
            return
        handle = session.handle
        if handle is None:
            return
        session.touch(self._clock())
        await self._manager.resize(session_id, handle, cols, rows)

    # -- output fan-out --

    async def _read_output(self, session: Session) -> None:
        stream = session.stream
        assert stream is not None
        reason = "Terminal session ended"
        try:
            while True:
                chunk = await stream.read()
                if chunk is None:
                    break
                self._on_output(session, chunk)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            reason = "Terminal stream failed"
            self._log.warning("session.stream_error", session_id=session.id, error=str(e))

        self._log.info("session.stream_ended", session_id=session.id)
        await self._stop_session(session, reason=reason)

    def _on_output(self, session: Session, chunk: bytes) -> None:
        text = session.decoder.decode(chunk)
        if not text:
            return
        session.touch(self._clock())
        self._broadcast(session, "output", text)

        signals = self._detector.detect(text, session.auth)
        if not signals:
            return
        for signal in signals:
            session.auth = session.auth.with_signal(signal)
            self._log.info(
                "session.auth_detected",
                session_id=session.id,
                signal_type=signal.type,
            )
            self._broadcast(session, "auth-detected", signal.to_dict())
        self._broadcast(session, "auth-state", session.auth.to_dict())

    def _broadcast(self, session: Session, event: str, data: Any) -> None:
        for connection in list(session.connections):
            try:
                connection.send(event, data)
            except Exception as e:
                self._log.warning(
                    "session.send_failed",
                    session_id=session.id,
                    connection_id=connection.id,
                    error=str(e),
                )
                session.connections.discard(connection)

    # -- teardown --

    async def stop(self, session_id: str, *, reason: str = "Terminal session stopped") -> bool:
        """Stop the session's container and drop its record.

        Returns:
            True if a live session was stopped
        """
        session = self._sessions.get(session_id)
        if session is None:
            return False
        return await self._stop_session(session, reason=reason)

    async def stop_if_idle(self, session_id: str, idle_timeout: float) -> bool:
        """Stop the session only if it is still unattached and idle."""
        async with self._locks.hold(session_id):
            session = self._sessions.get(session_id)
            if session is None or session.connections:
                return False
            idle_for = session.idle_for(self._clock())
            if idle_for <= idle_timeout:
                return False
            self._log.info("session.idle", session_id=session_id, idle_seconds=round(idle_for, 1))
            handle = self._evict(session, reason="Terminal session stopped after inactivity")

        if handle is not None:
            await self._manager.stop(session_id, handle)
        return True

    async def _stop_session(self, session: Session, *, reason: str) -> bool:
        async with self._locks.hold(session.id):
            if self._sessions.get(session.id) is not session:
                return False
            handle = self._evict(session, reason=reason)

        if handle is not None:
            await self._manager.stop(session.id, handle)
        return True

    def _evict(self, session: Session, *, reason: str) -> "TerminalHandle | None":
        """Drop the record, stop its reader and disconnect its clients."""
        del self._sessions[session.id]

        reader = self._readers.pop(session.id, None)
        if reader is not None and reader is not asyncio.current_task():
            reader.cancel()

        connections = list(session.connections)
        session.connections.clear()
        for connection in connections:
            try:
                connection.send("error-message", reason)
                connection.close()
            except Exception as e:
                self._log.debug("session.close_failed", connection_id=connection.id, error=str(e))

        self._log.info(
            "session.evicted",
            session_id=session.id,
            reason=reason,
            connections=len(connections),
        )
        return session.release()

    async def shutdown(self) -> None:
        """Stop every live session."""
        sessions = self.sessions()
        if not sessions:
            return
        self._log.info("session_registry.shutdown", sessions=len(sessions))
        await asyncio.gather(
            *(self._stop_session(s, reason="Server shutting down") for s in sessions),
        )


def _positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0
