"""Helm command abstractions.

This module provides commands for Helm release management: rendering
charts, installing wrapper charts, uninstalling and listing releases.

The namespace flag is omitted entirely when the namespace is empty so that
Helm falls back to the kubeconfig's namespace.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from dx.infra.errors import DeploymentError

from .types import CommandResult

if TYPE_CHECKING:
    from .runner import CommandRunner


class HelmCommands:
    """Helm-related shell commands.

    Provides operations for:
    - Chart rendering (template)
    - Release management (upgrade --install, uninstall)
    - Release discovery by label
    """

    def __init__(self, runner: CommandRunner, managed_by_selector: str = "managed-by=dx") -> None:
        """Initialize Helm commands.

        Args:
            runner: Command runner for executing shell commands
            managed_by_selector: Label attached to every release dx installs
        """
        self._runner = runner
        self._managed_by_selector = managed_by_selector

    @staticmethod
    def _namespace_args(namespace: str) -> list[str]:
        return ["--namespace", namespace] if namespace else []

    # =========================================================================
    # Rendering
    # =========================================================================

    def template(
        self,
        release_name: str,
        chart_path: Path | str,
        namespace: str,
        args: list[str] | None = None,
    ) -> CommandResult:
        """Render a chart to raw manifests with ``helm template``.

        Args:
            release_name: Release name used while rendering
            chart_path: Path to the chart directory
            namespace: Target namespace, omitted when empty
            args: Extra arguments appended verbatim (e.g. ``--set``, ``-f``)

        Returns:
            CommandResult whose stdout holds the rendered YAML
        """
        cmd = ["helm", "template", release_name, str(chart_path)]
        cmd.extend(self._namespace_args(namespace))
        cmd.extend(args or [])
        return self._runner.run(cmd)

    # =========================================================================
    # Release Management
    # =========================================================================

    def upgrade_from_manifests(
        self,
        release_name: str,
        namespace: str,
        wrapper_chart_path: Path | str,
    ) -> CommandResult:
        """Install or upgrade a release from a pre-rendered wrapper chart.

        Uses `helm upgrade --install` so repeated installs are idempotent,
        and labels the release so it can be discovered later.

        Example:
            >>> helm.upgrade_from_manifests(
            ...     "orders",
            ...     "team-a",
            ...     Path("~/.dx/dev/wrapper-charts/orders").expanduser(),
            ... )
        """
        cmd = [
            "helm",
            "upgrade",
            "--install",
            "--labels",
            self._managed_by_selector,
            release_name,
            str(wrapper_chart_path),
        ]
        cmd.extend(self._namespace_args(namespace))
        return self._runner.run(cmd)

    def uninstall(self, release_name: str, namespace: str) -> CommandResult:
        """Uninstall a Helm release.

        Args:
            release_name: Name of the release to uninstall
            namespace: Kubernetes namespace, omitted when empty

        Returns:
            CommandResult with uninstall status
        """
        cmd = ["helm", "uninstall", release_name]
        cmd.extend(self._namespace_args(namespace))
        return self._runner.run(cmd)

    # =========================================================================
    # Status Queries
    # =========================================================================

    def list_releases(self, label_selector: str, namespace: str) -> list[str]:
        """List release names matching a label selector.

        Args:
            label_selector: Helm label selector, e.g. ``managed-by=dx``
            namespace: Kubernetes namespace, omitted when empty

        Returns:
            Release names, one per line of ``helm list --short`` output

        Raises:
            DeploymentError: If helm exits non-zero
        """
        cmd = ["helm", "list", "-l", label_selector, "--short"]
        cmd.extend(self._namespace_args(namespace))

        result = self._runner.run(cmd)
        if not result.success:
            raise DeploymentError(
                "Failed to list Helm releases", details=result.combined_output
            )

        return [line.strip() for line in result.stdout.splitlines() if line.strip()]
