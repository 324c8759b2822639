from mobide.managers.workspace.workspace import WorkspaceManager

__all__ = ["WorkspaceManager"]
