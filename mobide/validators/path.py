"""Workspace path resolution.

Every filesystem operation resolves its target through
:func:`resolve_workspace_path` first. The check is lexical only: paths are
normalized and compared by relative prefix without touching the disk, so
escape attempts are rejected before any I/O happens.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from mobide.errors import InvalidPathError, InvalidSessionError


@dataclass(frozen=True, slots=True)
class WorkspacePath:
    """A resolved (workspace root, target) pair."""

    base: Path
    resolved: Path

    @property
    def is_root(self) -> bool:
        return self.resolved == self.base


def _escapes(relative: str) -> bool:
    return relative == ".." or relative.startswith(".." + os.sep) or os.path.isabs(relative)


def resolve_session_root(root: str | os.PathLike[str], session_id: str) -> Path:
    """Return the workspace directory of ``session_id`` under ``root``.

    Raises:
        InvalidSessionError: If the id is not a single plain path component
            that names a strict descendant of ``root``.
    """
    if not isinstance(session_id, str) or not session_id:
        raise InvalidSessionError()
    if "\x00" in session_id or os.sep in session_id or session_id in (".", ".."):
        raise InvalidSessionError()
    if os.altsep and os.altsep in session_id:
        raise InvalidSessionError()

    root_str = os.path.normpath(os.path.abspath(os.fspath(root)))
    base = os.path.normpath(os.path.join(root_str, session_id))
    relative = os.path.relpath(base, root_str)
    if relative in ("", ".") or _escapes(relative) or relative != session_id:
        raise InvalidSessionError()
    return Path(base)


def resolve_workspace_path(
    root: str | os.PathLike[str],
    session_id: str,
    target: str | None = "",
) -> WorkspacePath:
    """Resolve ``target`` inside the workspace of ``session_id``.

    ``""`` (and ``"."``) resolve to the workspace root itself.

    Raises:
        InvalidSessionError: See :func:`resolve_session_root`.
        InvalidPathError: If ``target`` is absolute, contains a ``..``
            segment or NUL byte, or otherwise resolves outside the workspace.
    """
    base = resolve_session_root(root, session_id)
    target = target or ""
    if not isinstance(target, str) or "\x00" in target:
        raise InvalidPathError()
    if os.path.isabs(target):
        raise InvalidPathError("Invalid path: absolute paths are not allowed")

    segments = target.replace(os.altsep or os.sep, os.sep).split(os.sep)
    if ".." in segments:
        raise InvalidPathError("Invalid path: path traversal ('..') is not allowed")

    resolved = os.path.normpath(os.path.join(base, target))
    relative = os.path.relpath(resolved, base)
    if _escapes(relative):
        raise InvalidPathError()
    return WorkspacePath(base=base, resolved=Path(resolved))
