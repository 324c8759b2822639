"""Workspace file endpoints.

All paths are relative to the session workspace and pass through the
workspace path validator before any disk access; rejections are 400s.
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Query
from pydantic import BaseModel, ConfigDict, Field

from mobide.api.dependencies import WorkspaceManagerDep

router = APIRouter()


# Request/Response Models


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class FileEntry(BaseModel):
    name: str
    type: Literal["dir", "file"]


class ListFilesResponse(BaseModel):
    path: str
    entries: list[FileEntry]


class ReadFileResponse(BaseModel):
    content: str


class OkResponse(BaseModel):
    ok: bool = True


class WriteFileRequest(_CamelModel):
    session_id: str = Field(alias="sessionId", min_length=1)
    path: str = Field(min_length=1)
    content: str = ""


class CreateEntryRequest(_CamelModel):
    session_id: str = Field(alias="sessionId", min_length=1)
    path: str = Field(min_length=1)
    type: Literal["file", "dir"] = "file"


class DeleteEntryRequest(_CamelModel):
    session_id: str = Field(alias="sessionId", min_length=1)
    path: str = Field(min_length=1)


class RenameEntryRequest(_CamelModel):
    session_id: str = Field(alias="sessionId", min_length=1)
    old_path: str = Field(alias="oldPath", min_length=1)
    new_path: str = Field(alias="newPath", min_length=1)


# Endpoints


@router.get("", response_model=ListFilesResponse)
async def list_files(
    workspaces: WorkspaceManagerDep,
    session_id: str = Query(..., alias="sessionId", min_length=1),
    path: str = Query(""),
    search: str = Query(""),
) -> ListFilesResponse:
    """List a workspace directory, optionally filtered by name."""
    entries = await workspaces.list_dir(session_id, path, search=search)
    return ListFilesResponse(path=path, entries=[FileEntry(**e) for e in entries])


@router.get("/read", response_model=ReadFileResponse)
async def read_file(
    workspaces: WorkspaceManagerDep,
    session_id: str = Query(..., alias="sessionId", min_length=1),
    path: str = Query(..., min_length=1),
) -> ReadFileResponse:
    """Read a UTF-8 text file."""
    content = await workspaces.read(session_id, path)
    return ReadFileResponse(content=content)


@router.post("/write", response_model=OkResponse)
async def write_file(request: WriteFileRequest, workspaces: WorkspaceManagerDep) -> OkResponse:
    """Write a text file, creating parent directories."""
    await workspaces.write(request.session_id, request.path, request.content)
    return OkResponse()


@router.post("/create", response_model=OkResponse)
async def create_entry(request: CreateEntryRequest, workspaces: WorkspaceManagerDep) -> OkResponse:
    """Create an empty file or a directory."""
    await workspaces.create(request.session_id, request.path, request.type)
    return OkResponse()


@router.post("/delete", response_model=OkResponse)
async def delete_entry(request: DeleteEntryRequest, workspaces: WorkspaceManagerDep) -> OkResponse:
    """Delete a file or directory tree. The workspace root cannot be deleted."""
    await workspaces.delete(request.session_id, request.path)
    return OkResponse()


@router.post("/rename", response_model=OkResponse)
async def rename_entry(request: RenameEntryRequest, workspaces: WorkspaceManagerDep) -> OkResponse:
    """Rename or move an entry within the workspace."""
    await workspaces.rename(request.session_id, request.old_path, request.new_path)
    return OkResponse()
