"""Shell command abstractions for Helm/kubectl deployment operations.

This package provides a clean interface for the external tools dx drives,
organized into specialized modules for each tool:

- helm: Helm rendering and release management
- kubectl: kustomize rendering and namespace lookup

Design Principles:
- Single Responsibility: Each module focuses on one tool
- One process boundary: every command goes through CommandRunner
- Consistent Return Types: Functions return CommandResult or parsed values

Usage:
    from dx.cli.deployment.shell_commands import ShellCommands

    commands = ShellCommands()
    releases = commands.helm.list_releases("managed-by=dx", "default")
"""

from pathlib import Path

from .helm import HelmCommands
from .kubectl import KubectlCommands
from .runner import CommandRunner
from .types import CommandResult


class ShellCommands:
    """Unified interface for all shell command operations.

    Attributes:
        helm: Helm-related commands
        kubectl: Kubernetes kubectl commands
    """

    def __init__(
        self,
        working_dir: Path | None = None,
        *,
        managed_by_selector: str = "managed-by=dx",
    ) -> None:
        """Initialize the shell commands executor.

        Args:
            working_dir: Default working directory for commands
            managed_by_selector: Label attached to dx-installed releases
        """
        self._runner = CommandRunner(working_dir)

        self.helm = HelmCommands(self._runner, managed_by_selector)
        self.kubectl = KubectlCommands(self._runner)

    @property
    def runner(self) -> CommandRunner:
        """Get the shared command runner."""
        return self._runner


__all__ = [
    "ShellCommands",
    "CommandResult",
    "HelmCommands",
    "KubectlCommands",
    "CommandRunner",
]
