"""Session endpoints.

A session is provisioned as an empty workspace; its container starts on the
first terminal connection.
"""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from mobide.api.dependencies import SessionRegistryDep, WorkspaceManagerDep
from mobide.errors import NotFoundError

router = APIRouter()


class CreateSessionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(serialization_alias="sessionId")


class AuthStateResponse(BaseModel):
    url: str | None = None
    code: str | None = None


class SessionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(serialization_alias="sessionId")
    live: bool
    connections: int
    auth: AuthStateResponse


@router.post("", response_model=CreateSessionResponse, response_model_by_alias=True)
async def create_session(workspaces: WorkspaceManagerDep) -> CreateSessionResponse:
    """Create a new session with an empty workspace."""
    session_id = await workspaces.create_session()
    return CreateSessionResponse(session_id=session_id)


@router.get("/{session_id}", response_model=SessionResponse, response_model_by_alias=True)
async def get_session(
    session_id: str,
    registry: SessionRegistryDep,
    workspaces: WorkspaceManagerDep,
) -> SessionResponse:
    """Get session status. A provisioned but unattached session is not live."""
    workspace_path = workspaces.path_for(session_id)
    session = registry.get(session_id)
    if session is None:
        if not workspace_path.is_dir():
            raise NotFoundError(f"Session not found: {session_id}")
        return SessionResponse(
            session_id=session_id,
            live=False,
            connections=0,
            auth=AuthStateResponse(),
        )

    return SessionResponse(
        session_id=session_id,
        live=session.is_live,
        connections=len(session.connections),
        auth=AuthStateResponse(**session.auth.to_dict()),
    )


@router.post("/{session_id}/stop")
async def stop_session(
    session_id: str,
    registry: SessionRegistryDep,
    workspaces: WorkspaceManagerDep,
) -> dict[str, bool]:
    """Stop the session's container, keeping its workspace.

    Idempotent: stopping a session without a container is not an error.
    """
    workspaces.path_for(session_id)
    stopped = await registry.stop(session_id)
    return {"ok": True, "stopped": stopped}
