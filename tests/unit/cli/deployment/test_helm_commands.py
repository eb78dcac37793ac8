"""Tests for Helm command construction."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from dx.cli.deployment.shell_commands.helm import HelmCommands
from dx.cli.deployment.shell_commands.types import CommandResult
from dx.infra.errors import DeploymentError


class TestHelmCommands:
    """Tests for HelmCommands."""

    @pytest.fixture
    def mock_runner(self) -> MagicMock:
        """Create a mock command runner."""
        runner = MagicMock()
        runner.run.return_value = CommandResult(success=True)
        return runner

    @pytest.fixture
    def helm_commands(self, mock_runner: MagicMock) -> HelmCommands:
        """Create HelmCommands instance with mock runner."""
        return HelmCommands(mock_runner)

    def test_template_appends_args_after_namespace(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        helm_commands.template("orders", Path("/charts/orders"), "team-a", ["--set", "a=b"])

        mock_runner.run.assert_called_once_with(
            ["helm", "template", "orders", "/charts/orders", "--namespace", "team-a", "--set", "a=b"]
        )

    def test_template_omits_empty_namespace(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        helm_commands.template("orders", "/charts/orders", "")

        cmd = mock_runner.run.call_args[0][0]
        assert "--namespace" not in cmd
        assert cmd == ["helm", "template", "orders", "/charts/orders"]

    def test_upgrade_labels_release(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        result = helm_commands.upgrade_from_manifests("orders", "team-a", Path("/wrap/orders"))

        assert result.success
        mock_runner.run.assert_called_once_with(
            [
                "helm",
                "upgrade",
                "--install",
                "--labels",
                "managed-by=dx",
                "orders",
                "/wrap/orders",
                "--namespace",
                "team-a",
            ]
        )

    def test_uninstall(self, helm_commands: HelmCommands, mock_runner: MagicMock) -> None:
        helm_commands.uninstall("orders", "")

        mock_runner.run.assert_called_once_with(["helm", "uninstall", "orders"])

    def test_list_releases_parses_short_output(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        mock_runner.run.return_value = CommandResult(success=True, stdout="dev-proxy\norders\n\n")

        releases = helm_commands.list_releases("managed-by=dx", "team-a")

        assert releases == ["dev-proxy", "orders"]
        mock_runner.run.assert_called_once_with(
            ["helm", "list", "-l", "managed-by=dx", "--short", "--namespace", "team-a"]
        )

    def test_list_releases_empty_output(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        mock_runner.run.return_value = CommandResult(success=True, stdout="")

        assert helm_commands.list_releases("managed-by=dx", "default") == []

    def test_list_releases_failure_raises(
        self, helm_commands: HelmCommands, mock_runner: MagicMock
    ) -> None:
        mock_runner.run.return_value = CommandResult(
            success=False, stderr="Kubernetes cluster unreachable", returncode=1
        )

        with pytest.raises(DeploymentError) as excinfo:
            helm_commands.list_releases("managed-by=dx", "default")

        assert "unreachable" in excinfo.value.details
