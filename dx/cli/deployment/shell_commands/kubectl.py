"""Kubectl command abstractions.

This module provides the kubectl operations dx relies on: merging patched
manifests with ``kubectl kustomize`` and resolving the active namespace.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from .types import CommandResult

if TYPE_CHECKING:
    from .runner import CommandRunner


class KubectlCommands:
    """Kubectl-related shell commands.

    Provides operations for:
    - Kustomize rendering of a prepared work directory
    - Namespace detection from the current kubeconfig context
    """

    def __init__(self, runner: CommandRunner) -> None:
        """Initialize kubectl commands.

        Args:
            runner: Command runner for executing shell commands
        """
        self._runner = runner

    # =========================================================================
    # Kustomize
    # =========================================================================

    def kustomize(self, work_dir: Path | str, *, cwd: Path | None = None) -> CommandResult:
        """Render a kustomization directory.

        Args:
            work_dir: Directory holding kustomization.yaml
            cwd: Directory relative work_dir paths are resolved from

        Returns:
            CommandResult whose stdout holds the merged manifests
        """
        return self._runner.run(["kubectl", "kustomize", str(work_dir)], cwd=cwd)

    # =========================================================================
    # Cluster Context
    # =========================================================================

    def get_current_namespace(self, default: str = "default") -> str:
        """Get the namespace selected by the current kubeconfig context.

        kubectl does the kubeconfig loading, so every ``$KUBECONFIG`` entry is
        merged the same way it is for helm. A failed lookup is treated the
        same as a context without a namespace.
        """
        result = self._runner.run(
            ["kubectl", "config", "view", "--minify", "-o", "jsonpath={..namespace}"]
        )
        if not result.success:
            logger.debug(
                f"Could not read kubeconfig, using namespace '{default}': "
                f"{result.combined_output.strip()}"
            )
            return default
        return result.stdout.strip() or default
