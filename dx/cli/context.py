"""CLI context and dependency container."""

from __future__ import annotations

from dataclasses import dataclass

import click
import typer

from dx.cli.deployment.helm_deployer import (
    ChartWrapper,
    DevProxyChartGenerator,
    KustomizePatcher,
    ServiceDeployer,
)
from dx.cli.deployment.shell_commands import ShellCommands
from dx.cli.shared.console import CLIConsole, console
from dx.infra.config import FileSystemConfigRepository
from dx.infra.constants import DeploymentConstants, DeploymentPaths
from dx.infra.filesystem import SandboxedFileSystem
from dx.infra.secrets import DotenvSecretsRepository
from dx.infra.templater import JinjaTemplater


@dataclass(frozen=True)
class CLIContext:
    """Runtime dependencies for CLI commands."""

    console: CLIConsole
    constants: DeploymentConstants
    paths: DeploymentPaths
    file_system: SandboxedFileSystem
    commands: ShellCommands
    config_repository: FileSystemConfigRepository
    deployer: ServiceDeployer
    dev_proxy: DevProxyChartGenerator


def build_cli_context() -> CLIContext:
    """Build a fresh CLIContext rooted at ``$DX_HOME`` or the user's home."""
    constants = DeploymentConstants()
    paths = DeploymentPaths()
    file_system = SandboxedFileSystem(
        paths.state_dir, allowed_files=[paths.config_file], home=paths.home
    )
    commands = ShellCommands(managed_by_selector=constants.managed_by_selector)
    config_repository = FileSystemConfigRepository(file_system, paths, constants)

    deployer = ServiceDeployer(
        config_repository=config_repository,
        secrets_repository=DotenvSecretsRepository(file_system, paths),
        templater=JinjaTemplater(),
        commands=commands,
        patcher=KustomizePatcher(file_system, commands.kubectl, constants),
        chart_wrapper=ChartWrapper(file_system, paths),
        paths=paths,
        constants=constants,
    )

    return CLIContext(
        console=console,
        constants=constants,
        paths=paths,
        file_system=file_system,
        commands=commands,
        config_repository=config_repository,
        deployer=deployer,
        dev_proxy=DevProxyChartGenerator(file_system, paths, constants),
    )


def get_cli_context(ctx: typer.Context | None = None) -> CLIContext:
    """Return the CLIContext from Typer, falling back to a new instance."""
    context = ctx or click.get_current_context(silent=True)
    if context and isinstance(context.obj, CLIContext):
        return context.obj
    return build_cli_context()
