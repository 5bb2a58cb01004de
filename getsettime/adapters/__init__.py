"""
Adapters layer - External integrations (workspace REST API).
"""

from .workspace_client import WorkspaceClient
from .mock_workspace_client import MockWorkspaceClient

__all__ = ["WorkspaceClient", "MockWorkspaceClient"]
