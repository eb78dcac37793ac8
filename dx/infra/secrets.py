"""Per-context secrets read from a dotenv file.

Secrets live in ``~/.dx/<context>/secrets.env`` as ``KEY=value`` lines.
Dotted keys (``db.password=...``) become nested values for templates.
"""

from __future__ import annotations

from io import StringIO

from dotenv import dotenv_values
from loguru import logger

from dx.infra.constants import DeploymentPaths
from dx.infra.filesystem import SandboxedFileSystem


class DotenvSecretsRepository:
    """Loads secrets for a context through the sandboxed file system."""

    def __init__(self, file_system: SandboxedFileSystem, paths: DeploymentPaths) -> None:
        self.file_system = file_system
        self.paths = paths

    def load_secrets(self, context_name: str) -> dict[str, str]:
        secrets_file = self.paths.secrets_file(context_name)
        if not self.file_system.file_exists(secrets_file):
            logger.debug(f"No secrets file for context '{context_name}'")
            return {}

        content = self.file_system.read_file(secrets_file).decode()
        values = dotenv_values(stream=StringIO(content))
        return {key: value for key, value in values.items() if value is not None}
