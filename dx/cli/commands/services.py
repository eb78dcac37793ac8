"""Service install, uninstall and status commands.

Services are picked by name or, when no names are given, by profile. Each
service is processed on its own: one failure is reported in the summary
and does not stop the remaining services.
"""

from collections.abc import Callable
from typing import Annotated

import typer
from loguru import logger

from dx.cli.context import CLIContext, get_cli_context
from dx.cli.shared.console import with_error_handling
from dx.infra.config import ConfigurationContext, Service
from dx.infra.errors import DeploymentError

ServicesArgument = Annotated[
    list[str] | None,
    typer.Argument(help="Services to act on (default: all services in the profile)"),
]
ProfileOption = Annotated[
    str,
    typer.Option("--profile", "-p", help="Profile used when no services are named"),
]


# ---------------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------------


def select_services(
    context: ConfigurationContext, names: list[str] | None, profile: str
) -> list[Service]:
    """Pick services by name, or by profile when no names are given.

    Configuration order is preserved.
    """
    if names:
        return [service for service in context.services if service.name in names]
    return [service for service in context.services if profile in service.profiles]


def _warn_unknown(cli: CLIContext, context: ConfigurationContext, names: list[str] | None) -> None:
    known = {service.name for service in context.services}
    for name in names or []:
        if name not in known:
            cli.console.warn(f"Unknown service '{name}' in context '{context.name}'")


def _dev_proxy_service(cli: CLIContext, context_name: str) -> Service:
    return Service(
        name=cli.constants.DEV_PROXY_NAME,
        helm_path=str(cli.paths.dev_proxy_chart(context_name)),
    )


def _run_each(
    cli: CLIContext,
    services: list[Service],
    action: Callable[[Service], object],
    verb: str,
) -> list[tuple[str, str | None]]:
    results: list[tuple[str, str | None]] = []
    for service in services:
        try:
            with cli.console.status(f"{verb} {service.name}..."):
                action(service)
        except DeploymentError as e:
            logger.debug(f"{verb} {service.name} failed: {e.details or e.message}")
            results.append((service.name, e.message))
            cli.console.error(f"{service.name}: {e.message}")
        else:
            results.append((service.name, None))
            cli.console.ok(service.name)
    return results


def _finish(cli: CLIContext, title: str, results: list[tuple[str, str | None]]) -> None:
    cli.console.print()
    cli.console.print_results(title, results)
    failed = [name for name, error in results if error is not None]
    if failed:
        raise DeploymentError(
            f"{len(failed)} of {len(results)} service(s) failed",
            details="\n".join(failed),
        )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@with_error_handling
def install(
    ctx: typer.Context,
    services: ServicesArgument = None,
    profile: ProfileOption = "default",
    skip_dev_proxy: Annotated[
        bool,
        typer.Option("--skip-dev-proxy", help="Do not install or upgrade the dev-proxy"),
    ] = False,
) -> None:
    """Install services with traffic for local services routed to the dev-proxy.

    Examples:
        dx install
        dx install orders-api payments-api
        dx install -p backend --skip-dev-proxy
    """
    cli = get_cli_context(ctx)
    context_name = cli.config_repository.load_current_context_name()
    context = cli.config_repository.load_current_configuration_context()

    _warn_unknown(cli, context, services)
    selected = select_services(context, services, profile)
    if not selected and skip_dev_proxy:
        cli.console.info("Nothing to install")
        return

    cli.console.print_header(f"Installing services into '{context_name}'")

    if not skip_dev_proxy:
        with cli.console.status("Installing dev-proxy..."):
            chart_dir = cli.dev_proxy.generate(context)
            cli.deployer.install_dev_proxy(
                Service(name=cli.constants.DEV_PROXY_NAME, helm_path=str(chart_dir))
            )
        cli.console.ok(cli.constants.DEV_PROXY_NAME)

    if not selected:
        cli.console.info("No services selected")
        return

    results = _run_each(cli, selected, cli.deployer.install_service, "Installing")
    _finish(cli, "Install summary", results)


@with_error_handling
def uninstall(
    ctx: typer.Context,
    services: ServicesArgument = None,
    profile: ProfileOption = "default",
) -> None:
    """Uninstall services, and the dev-proxy once no service remains.

    Examples:
        dx uninstall
        dx uninstall orders-api
    """
    cli = get_cli_context(ctx)
    context_name = cli.config_repository.load_current_context_name()
    context = cli.config_repository.load_current_configuration_context()

    _warn_unknown(cli, context, services)
    selected = select_services(context, services, profile)

    results: list[tuple[str, str | None]] = []
    if selected:
        cli.console.print_header(f"Uninstalling services from '{context_name}'")
        results = _run_each(cli, selected, cli.deployer.uninstall_service, "Uninstalling")

    dev_proxy_installed = cli.constants.DEV_PROXY_NAME in cli.deployer.list_managed_releases()
    if dev_proxy_installed and not cli.deployer.has_deployed_services():
        cli.console.info("Removing dev-proxy (no services remaining)")
        cli.deployer.uninstall_service(_dev_proxy_service(cli, context_name))
        cli.console.ok("dev-proxy removed")

    if results:
        _finish(cli, "Uninstall summary", results)


@with_error_handling
def status(ctx: typer.Context) -> None:
    """List dx-managed Helm releases in the current namespace."""
    cli = get_cli_context(ctx)
    namespace = cli.deployer.resolve_namespace()
    releases = cli.deployer.list_managed_releases()

    cli.console.print_header(f"dx releases in '{namespace}'")
    if not releases:
        cli.console.info("No dx-managed releases installed")
        return
    for release in releases:
        cli.console.print(f"  • {release}")
