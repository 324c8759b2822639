"""Mobide application entry point.

Wires the long-lived components together in the FastAPI lifespan:

    DockerDriver -> SessionManager -> SessionRegistry <- IdleReaper
                    WorkspaceManager -^
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from mobide.api.v1 import router as api_router
from mobide.config import Settings, get_settings
from mobide.drivers import DockerDriver, Driver
from mobide.errors import MobideError
from mobide.managers import SessionManager, WorkspaceManager
from mobide.services import AuthSignalDetector, IdleReaper, SessionRegistry
from mobide.utils import configure_logging

logger = structlog.get_logger()


def create_app(settings: Settings | None = None, *, driver: Driver | None = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings to use instead of ``get_settings()``
        driver: Container driver to use instead of a ``DockerDriver``
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        runtime_driver = driver or DockerDriver(settings.docker)
        workspaces = WorkspaceManager(settings.workspace.root_path)
        await workspaces.ensure_root()

        session_manager = SessionManager(
            runtime_driver,
            workspaces,
            settings.terminal,
            settings.workspace,
        )
        detector = AuthSignalDetector(
            url_pattern=settings.auth_detection.url_pattern,
            device_code_pattern=settings.auth_detection.device_code_pattern,
        )
        registry = SessionRegistry(session_manager, workspaces, detector)
        reaper = IdleReaper(settings.idle, registry)

        app.state.workspaces = workspaces
        app.state.registry = registry

        await reaper.start()
        logger.info(
            "mobide.started",
            workspaces_root=str(workspaces.root),
            image=settings.terminal.image,
        )
        try:
            yield
        finally:
            await reaper.stop()
            await registry.shutdown()
            await runtime_driver.close()
            logger.info("mobide.stopped")

    app = FastAPI(title="Mobide", lifespan=lifespan)

    @app.exception_handler(MobideError)
    async def mobide_error_handler(request: Request, exc: MobideError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(api_router, prefix="/api")

    static_dir = settings.server.static_dir
    if static_dir:
        if Path(static_dir).is_dir():
            app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
        else:
            logger.warning("mobide.static_dir_missing", static_dir=static_dir)

    return app


def run() -> None:
    """Console entry point."""
    settings = get_settings()
    configure_logging(settings.logging)
    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
