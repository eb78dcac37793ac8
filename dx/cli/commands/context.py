"""Context selection commands."""

from typing import Annotated

import typer
from rich.table import Table

from dx.cli.context import get_cli_context
from dx.cli.shared.console import with_error_handling
from dx.infra.errors import ConfigError

context_app = typer.Typer(help="Select and inspect configuration contexts")


@context_app.command("list")
@with_error_handling
def list_contexts(ctx: typer.Context) -> None:
    """List the contexts defined in ~/.dx-config.yaml, marking the current one."""
    cli = get_cli_context(ctx)
    config = cli.config_repository.load_config()
    try:
        current = cli.config_repository.load_current_context_name()
    except ConfigError:
        current = None

    for context in config.contexts:
        marker = "*" if context.name == current else " "
        cli.console.print(f"{marker} {context.name}")


@context_app.command("set")
@with_error_handling
def set_context(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Context to make current")],
) -> None:
    """Make NAME the current context.

    Examples:
        dx context set staging
    """
    cli = get_cli_context(ctx)
    config = cli.config_repository.load_config()
    if config.get_context(name) is None:
        known = ", ".join(context.name for context in config.contexts)
        raise ConfigError(f"Context '{name}' not found", details=f"Available contexts: {known}")

    cli.config_repository.save_current_context_name(name)
    cli.console.ok(f"Current context is now '{name}'")


@context_app.command("info")
@with_error_handling
def info(ctx: typer.Context) -> None:
    """Show the services and local services of the current context."""
    cli = get_cli_context(ctx)
    context = cli.config_repository.load_current_configuration_context()

    cli.console.print_header(f"Context '{context.name}'")

    services = Table(show_header=True, header_style="bold")
    services.add_column("Service", style="cyan")
    services.add_column("Profiles")
    for service in sorted(context.services, key=lambda s: s.name):
        services.add_row(service.name, ", ".join(sorted(service.profiles)))
    cli.console.print(services)

    if not context.local_services:
        cli.console.info("No local services")
        return

    local = Table(show_header=True, header_style="bold")
    local.add_column("Local service", style="cyan")
    local.add_column("Local port")
    local.add_column("Kubernetes port")
    local.add_column("Health check")
    local.add_column("Selector")
    for service in sorted(context.local_services, key=lambda s: s.name):
        local.add_row(
            service.name,
            str(service.local_port or "-"),
            str(service.kubernetes_port),
            service.health_check_path or "-",
            ", ".join(f"{k}={v}" for k, v in service.selector.items()) or "-",
        )
    cli.console.print(local)
