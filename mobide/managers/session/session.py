"""SessionManager - manages the terminal container behind a session.

Key responsibilities:
- ensure_image: process-wide memoized image check/pull
- provision: workspace + container + attached terminal stream
- resize / stop: best-effort, never raise
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from mobide.errors import ContainerIOError, ImageUnavailableError, MobideError
from mobide.models.session import TerminalHandle

if TYPE_CHECKING:
    from mobide.config import TerminalConfig, WorkspaceConfig
    from mobide.drivers.base import Driver
    from mobide.managers.workspace import WorkspaceManager

logger = structlog.get_logger()


class SessionManager:
    """Manages terminal container lifecycle."""

    def __init__(
        self,
        driver: "Driver",
        workspaces: "WorkspaceManager",
        terminal: "TerminalConfig",
        workspace: "WorkspaceConfig",
    ) -> None:
        self._driver = driver
        self._workspaces = workspaces
        self._terminal = terminal
        self._workspace = workspace
        self._log = logger.bind(manager="session")

        self._image_ready = False
        self._image_task: asyncio.Task[None] | None = None

    async def ensure_image(self) -> None:
        """Make sure the terminal image exists locally.

        All concurrent callers share one in-flight check/pull. Success is
        remembered for the life of the process; a failure is not, so the
        next caller tries again.

        Raises:
            ImageUnavailableError: Image missing and pulling disabled, or
                the pull failed
        """
        if self._image_ready:
            return

        task = self._image_task
        if task is None:
            task = asyncio.create_task(self._check_or_pull_image(), name="ensure-image")
            self._image_task = task

        try:
            # Shielded: one caller going away must not cancel the shared pull
            await asyncio.shield(task)
        except Exception:
            if self._image_task is task:
                self._image_task = None
            raise

        self._image_ready = True

    async def _check_or_pull_image(self) -> None:
        image = self._terminal.image
        if await self._driver.image_exists(image):
            return

        if not self._terminal.pull:
            raise ImageUnavailableError(
                f'Terminal image "{image}" not found. Build it or enable '
                "terminal.pull (MOBIDE_TERMINAL__PULL=true) to pull it.",
                details={"image": image},
            )

        self._log.info("session.image.pull", image=image)
        last_label = None
        try:
            async for event in self._driver.pull_image(image):
                if event.get("error"):
                    raise ImageUnavailableError(
                        f'Failed to pull image "{image}": {event["error"]}',
                        details={"image": image},
                    )
                status = event.get("status")
                if not status:
                    continue
                label = " ".join(part for part in (status, event.get("id")) if part)
                if label != last_label:
                    last_label = label
                    self._log.info("session.image.pull_progress", image=image, progress=label)
        except MobideError:
            raise
        except Exception as e:
            raise ImageUnavailableError(
                f'Failed to pull image "{image}": {e}',
                details={"image": image},
            ) from e

        self._log.info("session.image.pulled", image=image)

    async def provision(self, session_id: str) -> TerminalHandle:
        """Create, start and attach a terminal container for ``session_id``.

        Returns:
            The container/stream pair

        Raises:
            InvalidSessionError: Session id escapes the workspaces root
            ImageUnavailableError: Image could not be obtained
            ContainerIOError: Container create/start/attach failed
        """
        await self.ensure_image()
        workspace_path = await self._workspaces.ensure(session_id)

        self._log.info("session.provision", session_id=session_id, image=self._terminal.image)

        try:
            container_id = await self._driver.create(
                session_id,
                workspace_path,
                self._terminal,
                self._workspace,
            )
        except Exception as e:
            self._log.error("session.create_failed", session_id=session_id, error=str(e))
            raise ContainerIOError(
                f"Failed to create terminal container: {e}",
                details={"session_id": session_id},
            ) from e

        try:
            await self._driver.start(container_id)
            stream = await self._driver.attach(container_id)
        except Exception as e:
            self._log.error(
                "session.start_failed",
                session_id=session_id,
                container_id=container_id,
                error=str(e),
            )
            # A container that never ran is not auto-removed
            try:
                await self._driver.destroy(container_id)
            except Exception as destroy_error:
                self._log.warning(
                    "session.destroy_failed",
                    container_id=container_id,
                    error=str(destroy_error),
                )
            raise ContainerIOError(
                f"Failed to start terminal container: {e}",
                details={"session_id": session_id},
            ) from e

        self._log.info("session.provisioned", session_id=session_id, container_id=container_id)
        return TerminalHandle(container_id=container_id, stream=stream)

    async def resize(self, session_id: str, handle: TerminalHandle, cols: int, rows: int) -> None:
        """Resize the container TTY. Failures are logged only."""
        try:
            await self._driver.resize(handle.container_id, cols, rows)
        except Exception as e:
            self._log.warning(
                "session.resize_failed",
                session_id=session_id,
                container_id=handle.container_id,
                cols=cols,
                rows=rows,
                error=str(e),
            )

    async def stop(self, session_id: str, handle: TerminalHandle) -> None:
        """Close the stream and stop the container. Failures are logged only."""
        self._log.info("session.stop", session_id=session_id, container_id=handle.container_id)

        try:
            await handle.stream.close()
        except Exception as e:
            self._log.warning("session.stream_close_failed", session_id=session_id, error=str(e))

        try:
            await self._driver.stop(handle.container_id)
        except Exception as e:
            self._log.warning(
                "session.container_stop_failed",
                session_id=session_id,
                container_id=handle.container_id,
                error=str(e),
            )
