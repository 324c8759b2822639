"""Manager layer - business logic."""

from mobide.managers.session import SessionManager
from mobide.managers.workspace import WorkspaceManager

__all__ = ["SessionManager", "WorkspaceManager"]
