"""Driver base class - container runtime abstraction.

Driver is responsible ONLY for talking to the container runtime.
It does NOT handle:
- Image memoization
- Session bookkeeping
- Fan-out of terminal output
- Idle reclamation
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from mobide.config import TerminalConfig, WorkspaceConfig


class TerminalStream(ABC):
    """Duplex byte stream to a container's controlling terminal."""

    @abstractmethod
    async def read(self) -> bytes | None:
        """Read the next output chunk.

        Returns:
            Chunk bytes, or None once the stream has ended
        """
        ...

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """Write input bytes to the terminal."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the stream. Safe to call more than once."""
        ...


class Driver(ABC):
    """Abstract driver interface for terminal container lifecycle.

    All containers created by a driver MUST be labeled with:
    - mobide.managed
    - mobide.session_id
    """

    @abstractmethod
    async def image_exists(self, image: str) -> bool:
        """Check whether ``image`` is present locally."""
        ...

    @abstractmethod
    def pull_image(self, image: str) -> AsyncIterator[dict[str, Any]]:
        """Pull ``image``, yielding runtime progress events."""
        ...

    @abstractmethod
    async def create(
        self,
        session_id: str,
        workspace_path: Path,
        terminal: "TerminalConfig",
        workspace: "WorkspaceConfig",
    ) -> str:
        """Create an interactive terminal container without starting it.

        Args:
            session_id: Session the container belongs to
            workspace_path: Host directory bind-mounted read-write
            terminal: Image, user, command and working directory
            workspace: Mount path inside the container

        Returns:
            Container ID
        """
        ...

    @abstractmethod
    async def start(self, container_id: str) -> None:
        """Start a created container."""
        ...

    @abstractmethod
    async def attach(self, container_id: str) -> TerminalStream:
        """Attach stdin/stdout/stderr of a running container."""
        ...

    @abstractmethod
    async def resize(self, container_id: str, cols: int, rows: int) -> None:
        """Resize the container's TTY."""
        ...

    @abstractmethod
    async def stop(self, container_id: str) -> None:
        """Stop a container immediately (no grace period)."""
        ...

    @abstractmethod
    async def destroy(self, container_id: str) -> None:
        """Force-remove a container."""
        ...

    async def close(self) -> None:
        """Release runtime client resources."""
        return None
