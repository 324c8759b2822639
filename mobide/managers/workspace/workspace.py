"""WorkspaceManager - per-session workspace directories and file operations.

Every operation resolves its target through the workspace path validator
before touching disk. Blocking filesystem calls run in a worker thread.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import uuid
from pathlib import Path
from typing import Any, Literal

import structlog

from mobide.errors import FileOperationError, NotFoundError, ValidationError
from mobide.validators.path import resolve_session_root, resolve_workspace_path

logger = structlog.get_logger()

EntryType = Literal["dir", "file"]


def _translate_os_error(e: OSError, action: str, path: str) -> Exception:
    if isinstance(e, FileNotFoundError):
        return NotFoundError(f"Not found: {path}")
    reason = e.strerror or str(e)
    return FileOperationError(f"Failed to {action} {path}: {reason}")


class WorkspaceManager:
    """Manages session workspace directories."""

    def __init__(self, root_path: str | os.PathLike[str]) -> None:
        self._root = Path(os.path.abspath(os.fspath(root_path)))
        self._log = logger.bind(manager="workspace")

    @property
    def root(self) -> Path:
        return self._root

    async def ensure_root(self) -> Path:
        """Create the global workspaces root."""
        await asyncio.to_thread(self._root.mkdir, parents=True, exist_ok=True)
        return self._root

    def path_for(self, session_id: str) -> Path:
        return resolve_session_root(self._root, session_id)

    async def ensure(self, session_id: str) -> Path:
        """Create the session workspace if missing and return it."""
        base = self.path_for(session_id)
        await asyncio.to_thread(base.mkdir, parents=True, exist_ok=True)
        return base

    async def create_session(self) -> str:
        """Allocate a fresh session id and its empty workspace."""
        session_id = str(uuid.uuid4())
        await self.ensure(session_id)
        self._log.info("workspace.session_created", session_id=session_id)
        return session_id

    async def list_dir(
        self,
        session_id: str,
        path: str = "",
        *,
        search: str = "",
    ) -> list[dict[str, Any]]:
        """List directory entries, optionally filtered by name substring."""
        target = resolve_workspace_path(self._root, session_id, path)
        needle = search.lower()

        def _list() -> list[dict[str, Any]]:
            entries = []
            with os.scandir(target.resolved) as it:
                for entry in it:
                    if needle and needle not in entry.name.lower():
                        continue
                    entry_type: EntryType = "dir" if entry.is_dir() else "file"
                    entries.append({"name": entry.name, "type": entry_type})
            entries.sort(key=lambda e: e["name"])
            return entries

        try:
            return await asyncio.to_thread(_list)
        except OSError as e:
            raise _translate_os_error(e, "list", path or ".") from e

    async def read(self, session_id: str, path: str) -> str:
        target = resolve_workspace_path(self._root, session_id, path)
        try:
            return await asyncio.to_thread(target.resolved.read_text, encoding="utf-8")
        except UnicodeDecodeError as e:
            raise FileOperationError(f"Failed to read {path}: not a UTF-8 text file") from e
        except OSError as e:
            raise _translate_os_error(e, "read", path) from e

    async def write(self, session_id: str, path: str, content: str) -> None:
        target = resolve_workspace_path(self._root, session_id, path)
        if target.is_root:
            raise ValidationError("Refusing to write to workspace root")

        def _write() -> None:
            target.resolved.parent.mkdir(parents=True, exist_ok=True)
            target.resolved.write_text(content, encoding="utf-8")

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            raise _translate_os_error(e, "write", path) from e

    async def create(self, session_id: str, path: str, entry_type: str = "file") -> None:
        """Create a directory tree, or an empty file (truncating an existing one)."""
        target = resolve_workspace_path(self._root, session_id, path)
        if target.is_root:
            raise ValidationError("Refusing to create workspace root")

        def _create() -> None:
            if entry_type == "dir":
                target.resolved.mkdir(parents=True, exist_ok=True)
            else:
                target.resolved.parent.mkdir(parents=True, exist_ok=True)
                target.resolved.write_text("", encoding="utf-8")

        try:
            await asyncio.to_thread(_create)
        except OSError as e:
            raise _translate_os_error(e, "create", path) from e

    async def delete(self, session_id: str, path: str) -> None:
        """Delete a file or directory tree. Missing targets are ignored."""
        target = resolve_workspace_path(self._root, session_id, path)
        if target.is_root:
            raise ValidationError("Refusing to delete workspace root")

        def _delete() -> None:
            resolved = target.resolved
            if resolved.is_dir() and not resolved.is_symlink():
                shutil.rmtree(resolved)
            else:
                resolved.unlink(missing_ok=True)

        try:
            await asyncio.to_thread(_delete)
        except FileNotFoundError:
            return
        except OSError as e:
            raise _translate_os_error(e, "delete", path) from e

    async def rename(self, session_id: str, old_path: str, new_path: str) -> None:
        source = resolve_workspace_path(self._root, session_id, old_path)
        destination = resolve_workspace_path(self._root, session_id, new_path)
        if source.is_root or destination.is_root:
            raise ValidationError("Refusing to rename workspace root")

        def _rename() -> None:
            destination.resolved.parent.mkdir(parents=True, exist_ok=True)
            os.rename(source.resolved, destination.resolved)

        try:
            await asyncio.to_thread(_rename)
        except OSError as e:
            raise _translate_os_error(e, "rename", old_path) from e
