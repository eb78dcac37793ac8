"""CLI command modules.

- services: install, uninstall and status of dx-managed releases
- context: list, select and inspect configuration contexts
"""

from .context import context_app
from .services import install, status, uninstall

__all__ = ["install", "uninstall", "status", "context_app"]
