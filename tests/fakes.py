"""In-memory stand-ins for the container runtime and client connections."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from mobide.drivers.base import Driver, TerminalStream

if TYPE_CHECKING:
    from mobide.config import TerminalConfig, WorkspaceConfig


class FakeTerminalStream(TerminalStream):
    """Terminal stream fed by the test. With ``echo`` every write is read back."""

    def __init__(self, *, echo: bool = False) -> None:
        self._chunks: asyncio.Queue[bytes | Exception | None] = asyncio.Queue()
        self.echo = echo
        self.writes: list[bytes] = []
        self.closed = False
        self.fail_writes = False

    def feed(self, data: bytes | str) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._chunks.put_nowait(data)

    def end(self) -> None:
        self._chunks.put_nowait(None)

    def fail(self, error: Exception) -> None:
        self._chunks.put_nowait(error)

    async def read(self) -> bytes | None:
        item = await self._chunks.get()
        if isinstance(item, Exception):
            raise item
        return item

    async def write(self, data: bytes) -> None:
        if self.fail_writes:
            raise RuntimeError("broken pipe")
        self.writes.append(data)
        if self.echo:
            self.feed(data)

    async def close(self) -> None:
        self.closed = True
        self._chunks.put_nowait(None)


@dataclass
class FakeContainer:
    container_id: str
    session_id: str
    workspace_path: Path
    config: dict[str, Any]
    stream: FakeTerminalStream | None = None
    started: bool = False


class FakeDriver(Driver):
    """Records every runtime call; images and failures are test-controlled."""

    def __init__(
        self,
        *,
        images: tuple[str, ...] = ("mobide-cli",),
        pull_events: list[dict[str, Any]] | None = None,
        echo: bool = False,
    ) -> None:
        self.images = set(images)
        self.pull_events = (
            pull_events
            if pull_events is not None
            else [
                {"status": "Pulling fs layer", "id": "layer1"},
                {"status": "Pulling fs layer", "id": "layer1"},
                {"status": "Download complete", "id": "layer1"},
            ]
        )
        self.echo = echo
        self.pull_gate: asyncio.Event | None = None

        self.containers: dict[str, FakeContainer] = {}
        self.inspect_calls: list[str] = []
        self.pull_calls: list[str] = []
        self.create_calls: list[dict[str, Any]] = []
        self.start_calls: list[str] = []
        self.resize_calls: list[tuple[str, int, int]] = []
        self.stop_calls: list[str] = []
        self.destroy_calls: list[str] = []

        self.fail_start = False
        self.fail_resize = False
        self.fail_stop = False
        self.closed = False

    async def image_exists(self, image: str) -> bool:
        self.inspect_calls.append(image)
        return image in self.images

    async def pull_image(self, image: str) -> AsyncIterator[dict[str, Any]]:
        self.pull_calls.append(image)
        if self.pull_gate is not None:
            await self.pull_gate.wait()
        for event in self.pull_events:
            yield event
        self.images.add(image)

    async def create(
        self,
        session_id: str,
        workspace_path: Path,
        terminal: "TerminalConfig",
        workspace: "WorkspaceConfig",
    ) -> str:
        container_id = f"fake-container-{len(self.create_calls) + 1}"
        config = {
            "image": terminal.image,
            "user": terminal.user,
            "command": list(terminal.command),
            "working_dir": terminal.working_dir,
            "mount": f"{workspace_path}:{workspace.mount_path}:rw",
        }
        self.create_calls.append({"session_id": session_id, **config})
        self.containers[container_id] = FakeContainer(
            container_id=container_id,
            session_id=session_id,
            workspace_path=workspace_path,
            config=config,
        )
        return container_id

    async def start(self, container_id: str) -> None:
        self.start_calls.append(container_id)
        if self.fail_start:
            raise RuntimeError("boom")
        self.containers[container_id].started = True

    async def attach(self, container_id: str) -> FakeTerminalStream:
        stream = FakeTerminalStream(echo=self.echo)
        self.containers[container_id].stream = stream
        return stream

    async def resize(self, container_id: str, cols: int, rows: int) -> None:
        if self.fail_resize:
            raise RuntimeError("no such tty")
        self.resize_calls.append((container_id, cols, rows))

    async def stop(self, container_id: str) -> None:
        self.stop_calls.append(container_id)
        if self.fail_stop:
            raise RuntimeError("daemon went away")

    async def destroy(self, container_id: str) -> None:
        self.destroy_calls.append(container_id)

    async def close(self) -> None:
        self.closed = True

    def stream_for(self, session_id: str) -> FakeTerminalStream:
        """Latest attached stream of ``session_id``."""
        for container in reversed(list(self.containers.values())):
            if container.session_id == session_id and container.stream is not None:
                return container.stream
        raise KeyError(session_id)


@dataclass(eq=False)
class FakeConnection:
    """Connection that records the events it is sent."""

    id: str = "conn"
    events: list[tuple[str, Any]] = field(default_factory=list)
    closed: bool = False
    broken: bool = False

    def send(self, event: str, data: Any) -> None:
        if self.broken:
            raise ConnectionResetError("client gone")
        if not self.closed:
            self.events.append((event, data))

    def close(self) -> None:
        self.closed = True

    def of(self, event: str) -> list[Any]:
        return [data for name, data in self.events if name == event]


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)
