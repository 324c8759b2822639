"""FastAPI dependencies.

Long-lived components are built once in the application lifespan and kept
on ``app.state``; handlers receive them through these dependencies.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from starlette.requests import HTTPConnection

from mobide.managers.workspace import WorkspaceManager
from mobide.services.terminal import SessionRegistry


def get_workspace_manager(conn: HTTPConnection) -> WorkspaceManager:
    return conn.app.state.workspaces


def get_session_registry(conn: HTTPConnection) -> SessionRegistry:
    return conn.app.state.registry


WorkspaceManagerDep = Annotated[WorkspaceManager, Depends(get_workspace_manager)]
SessionRegistryDep = Annotated[SessionRegistry, Depends(get_session_registry)]
