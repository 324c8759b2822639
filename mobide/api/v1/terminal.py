"""Terminal WebSocket endpoint.

Frames are JSON objects ``{"event": <name>, "data": <payload>}``.

Client -> server:
- ``input``: string typed into the terminal
- ``resize``: ``{"cols": int, "rows": int}``

Server -> client:
- ``output``: terminal text
- ``auth-state``: ``{"url", "code"}``, on attach and after each change
- ``auth-detected``: ``{"type": "url"|"code", "value"}``
- ``error-message``: string, followed by the socket closing
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Any

import structlog
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from mobide.api.dependencies import SessionRegistryDep
from mobide.errors import MobideError
from mobide.services.terminal import SessionRegistry, WebSocketConnection

router = APIRouter()

logger = structlog.get_logger()


@router.websocket("/terminal")
async def terminal(
    websocket: WebSocket,
    registry: SessionRegistryDep,
    session_id: str | None = Query(None, alias="sessionId"),
) -> None:
    await websocket.accept()
    connection = WebSocketConnection(websocket)
    sender = asyncio.create_task(connection.run_sender(), name=f"ws-sender-{connection.id}")
    log = logger.bind(session_id=session_id, connection_id=connection.id)

    attached = False
    try:
        if not session_id:
            connection.send("error-message", "Missing sessionId")
            return

        try:
            await registry.attach(session_id, connection)
            attached = True
        except MobideError as e:
            log.warning("terminal.attach_failed", code=e.code, error=e.message)
            connection.send("error-message", e.message)
            return
        except Exception as e:
            log.exception("terminal.attach_error", error=str(e))
            connection.send("error-message", "Connection failed")
            return

        await _serve(websocket, registry, session_id, connection)
    finally:
        if attached:
            registry.detach(session_id, connection)
        connection.close()
        await sender


async def _serve(
    websocket: WebSocket,
    registry: SessionRegistry,
    session_id: str,
    connection: WebSocketConnection,
) -> None:
    """Pump client events until the client leaves or the session ends."""
    receiver = asyncio.create_task(_receive_events(websocket, registry, session_id))
    closed = asyncio.create_task(connection.wait_closed())
    try:
        await asyncio.wait({receiver, closed}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (receiver, closed):
            task.cancel()
        for task in (receiver, closed):
            with contextlib.suppress(asyncio.CancelledError):
                await task


async def _receive_events(websocket: WebSocket, registry: SessionRegistry, session_id: str) -> None:
    log = logger.bind(session_id=session_id)
    while True:
        try:
            message: Any = await websocket.receive_json()
        except WebSocketDisconnect:
            return
        except (KeyError, ValueError):
            log.debug("terminal.bad_frame")
            continue

        if not isinstance(message, dict):
            continue
        event = message.get("event")
        data = message.get("data")

        if event == "input":
            if isinstance(data, str):
                await registry.input(session_id, data)
        elif event == "resize":
            if isinstance(data, dict):
                await registry.resize(session_id, data.get("cols"), data.get("rows"))
        else:
            log.debug("terminal.unknown_event", frame_event=event)
