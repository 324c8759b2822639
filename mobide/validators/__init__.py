"""Input validators."""

from mobide.validators.path import (
    WorkspacePath,
    resolve_session_root,
    resolve_workspace_path,
)

__all__ = ["WorkspacePath", "resolve_session_root", "resolve_workspace_path"]
