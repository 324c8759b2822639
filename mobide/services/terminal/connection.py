"""Client connections attached to a terminal session.

A connection receives named events (``output``, ``auth-state``,
``auth-detected``, ``error-message``). ``send`` never blocks: each
connection owns a bounded FIFO outbox drained by its own sender task. A
client that falls ``max_pending`` events behind is closed.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Any, Protocol, runtime_checkable

import structlog
from fastapi import WebSocket
from starlette.websockets import WebSocketState

logger = structlog.get_logger()

DEFAULT_OUTBOX_LIMIT = 1000


class OutboxOverflowError(ConnectionError):
    """Client stopped draining its outbox."""


@runtime_checkable
class Connection(Protocol):
    id: str

    def send(self, event: str, data: Any) -> None: ...

    def close(self) -> None: ...


class WebSocketConnection:
    """Connection over a FastAPI WebSocket carrying ``{"event", "data"}`` JSON frames."""

    def __init__(self, websocket: WebSocket, *, max_pending: int = DEFAULT_OUTBOX_LIMIT) -> None:
        self.id = uuid.uuid4().hex[:12]
        self._ws = websocket
        self._outbox: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue(maxsize=max_pending)
        self._closed = asyncio.Event()
        self._log = logger.bind(connection_id=self.id)

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    @property
    def pending(self) -> int:
        return self._outbox.qsize()

    def send(self, event: str, data: Any) -> None:
        """Queue an event.

        Raises:
            OutboxOverflowError: The outbox is full; the connection is closed
        """
        if self._closed.is_set():
            return
        try:
            self._outbox.put_nowait({"event": event, "data": data})
        except asyncio.QueueFull:
            self._log.warning("connection.outbox_overflow", limit=self._outbox.maxsize)
            self.close()
            raise OutboxOverflowError(
                f"Connection {self.id} fell {self._outbox.maxsize} events behind"
            ) from None

    def close(self) -> None:
        if self._closed.is_set():
            return
        self._closed.set()
        if self._outbox.full():
            # Pending events of a stalled client are dropped
            while not self._outbox.empty():
                self._outbox.get_nowait()
        self._outbox.put_nowait(None)

    async def wait_closed(self) -> None:
        await self._closed.wait()

    async def run_sender(self) -> None:
        """Drain the outbox into the socket, then close the socket."""
        while True:
            message = await self._outbox.get()
            if message is None:
                break
            try:
                await self._ws.send_json(message)
            except Exception as e:
                self._log.debug("connection.send_failed", error=str(e))
                self.close()
                return

        if self._ws.client_state == WebSocketState.CONNECTED:
            try:
                await self._ws.close()
            except Exception as e:
                self._log.debug("connection.close_failed", error=str(e))
