"""IdleReaper - periodic reclamation of abandoned terminal containers.

Each cycle stops every live session that has no attached connection and has
seen no activity for longer than the idle timeout. Sessions with at least
one attached connection are never reaped.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from mobide.config import IdleConfig
    from mobide.services.terminal import SessionRegistry

logger = structlog.get_logger()


class IdleReaper:
    """Background sweep over the session registry."""

    def __init__(
        self,
        config: "IdleConfig",
        registry: "SessionRegistry",
    ) -> None:
        self._config = config
        self._registry = registry
        self._log = logger.bind(service="idle_reaper")

        self._running = False
        self._task: asyncio.Task | None = None
        self._run_lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start background sweep loop."""
        if self._running:
            self._log.warning("idle_reaper.already_running")
            return

        self._running = True
        self._task = asyncio.create_task(
            self._background_loop(),
            name="idle-reaper",
        )
        self._log.info(
            "idle_reaper.started",
            interval_seconds=self._config.reap_interval_seconds,
            idle_timeout_seconds=self._config.timeout_seconds,
        )

    async def stop(self) -> None:
        """Stop background sweep loop gracefully."""
        if not self._running:
            return

        self._log.info("idle_reaper.stopping")
        self._running = False

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        self._log.info("idle_reaper.stopped")

    async def run_once(self) -> list[str]:
        """Execute one sweep.

        Returns:
            IDs of the sessions that were stopped
        """
        async with self._run_lock:
            return await self._run_cycle()

    async def _run_cycle(self) -> list[str]:
        timeout = self._config.timeout_seconds
        now = self._registry.clock()

        candidates = [
            session.id
            for session in self._registry.sessions()
            if not session.connections and session.idle_for(now) > timeout
        ]
        if not candidates:
            return []

        stopped: list[str] = []
        for session_id in candidates:
            try:
                if await self._registry.stop_if_idle(session_id, timeout):
                    stopped.append(session_id)
            except Exception as exc:
                self._log.exception(
                    "idle_reaper.stop_failed",
                    session_id=session_id,
                    error=str(exc),
                )

        self._log.info(
            "idle_reaper.cycle.complete",
            candidates=len(candidates),
            stopped=len(stopped),
        )
        return stopped

    async def _background_loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self._config.reap_interval_seconds)
            except asyncio.CancelledError:
                break

            try:
                await self.run_once()
            except Exception as exc:
                self._log.exception(
                    "idle_reaper.cycle_error",
                    error=str(exc),
                )
