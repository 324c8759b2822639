"""Docker driver implementation using aiodocker.

Supports:
- Running Mobide inside a container with mounted docker.sock
- Running Mobide on host with direct docker.sock access
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path
from typing import TYPE_CHECKING, Any

import aiodocker
import structlog
from aiodocker.exceptions import DockerError
from aiodocker.stream import Stream

from mobide.drivers.base import Driver, TerminalStream
from mobide.errors import TransientRuntimeError

if TYPE_CHECKING:
    from mobide.config import DockerConfig, TerminalConfig, WorkspaceConfig

logger = structlog.get_logger()


class DockerTerminalStream(TerminalStream):
    """TerminalStream over an aiodocker attach stream."""

    def __init__(self, stream: Stream) -> None:
        self._stream = stream
        self._closed = False

    async def read(self) -> bytes | None:
        message = await self._stream.read_out()
        if message is None:
            return None
        return message.data

    async def write(self, data: bytes) -> None:
        await self._stream.write_in(data)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._stream.close()


class DockerDriver(Driver):
    """Docker driver implementation using aiodocker."""

    def __init__(self, config: "DockerConfig") -> None:
        # Parse socket URL
        socket_url = config.socket
        if socket_url.startswith(("unix://", "tcp://", "http://", "https://")):
            self._socket = socket_url
        else:
            self._socket = f"unix://{socket_url}"

        self._log = logger.bind(driver="docker")
        self._client: aiodocker.Docker | None = None

    async def _get_client(self) -> aiodocker.Docker:
        """Get or create the aiodocker client."""
        if self._client is None:
            self._client = aiodocker.Docker(url=self._socket)
        return self._client

    async def close(self) -> None:
        """Close the docker client."""
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def image_exists(self, image: str) -> bool:
        client = await self._get_client()
        try:
            await client.images.inspect(image)
            return True
        except DockerError as e:
            if e.status == 404:
                return False
            raise

    async def pull_image(self, image: str) -> AsyncIterator[dict[str, Any]]:
        client = await self._get_client()
        self._log.info("docker.pull", image=image)
        async for event in client.images.pull(image, stream=True):
            yield event

    async def create(
        self,
        session_id: str,
        workspace_path: Path,
        terminal: "TerminalConfig",
        workspace: "WorkspaceConfig",
    ) -> str:
        """Create an interactive terminal container without starting it."""
        client = await self._get_client()

        self._log.info(
            "docker.create",
            session_id=session_id,
            image=terminal.image,
            workspace=str(workspace_path),
        )

        config = {
            "Image": terminal.image,
            "Cmd": list(terminal.command),
            "User": terminal.user,
            "WorkingDir": terminal.working_dir,
            "Env": [
                f"TERM={terminal.term}",
                f"MOBIDE_SESSION_ID={session_id}",
            ],
            "Tty": True,
            "OpenStdin": True,
            "StdinOnce": False,
            "AttachStdin": True,
            "AttachStdout": True,
            "AttachStderr": True,
            "Labels": {
                "mobide.managed": "true",
                "mobide.session_id": session_id,
            },
            "HostConfig": {
                "Binds": [f"{workspace_path}:{workspace.mount_path}:rw"],
                # Stopped containers are removed by the daemon
                "AutoRemove": True,
            },
        }

        container = await client.containers.create(config=config)

        container_id = container.id
        self._log.info("docker.created", session_id=session_id, container_id=container_id)
        return container_id

    async def start(self, container_id: str) -> None:
        client = await self._get_client()
        self._log.info("docker.start", container_id=container_id)

        container = client.containers.container(container_id)
        await container.start()

    async def attach(self, container_id: str) -> TerminalStream:
        client = await self._get_client()
        self._log.info("docker.attach", container_id=container_id)

        container = client.containers.container(container_id)
        stream = container.attach(stdin=True, stdout=True, stderr=True)
        # Perform the HTTP upgrade now so attach errors surface here
        await stream.__aenter__()
        return DockerTerminalStream(stream)

    async def resize(self, container_id: str, cols: int, rows: int) -> None:
        client = await self._get_client()
        container = client.containers.container(container_id)
        try:
            await container.resize(h=rows, w=cols)
        except DockerError as e:
            raise TransientRuntimeError(
                f"Failed to resize terminal: {e.message}",
                details={"container_id": container_id},
            ) from e

    async def stop(self, container_id: str) -> None:
        """Stop a running container with no grace period."""
        client = await self._get_client()
        self._log.info("docker.stop", container_id=container_id)

        try:
            container = client.containers.container(container_id)
            await container.stop(t=0)
        except DockerError as e:
            if e.status == 404:
                self._log.warning("docker.stop.not_found", container_id=container_id)
            else:
                raise TransientRuntimeError(
                    f"Failed to stop container: {e.message}",
                    details={"container_id": container_id},
                ) from e

    async def destroy(self, container_id: str) -> None:
        """Destroy (remove) a container."""
        client = await self._get_client()
        self._log.info("docker.destroy", container_id=container_id)

        try:
            container = client.containers.container(container_id)
            await container.delete(force=True)
        except DockerError as e:
            if e.status == 404:
                self._log.warning("docker.destroy.not_found", container_id=container_id)
            else:
                raise
