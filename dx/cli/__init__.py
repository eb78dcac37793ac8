"""Main CLI application module.

This module provides the main entry point for the dx CLI.

Commands:
- install: Install services with traffic routed through the dev-proxy
- uninstall: Remove services, and the dev-proxy once none remain
- status: List dx-managed releases
- context: List, select and inspect configuration contexts
"""

import sys
from typing import Annotated

import typer
from loguru import logger

from .commands import context_app, install, status, uninstall

# Create the main CLI application
app = typer.Typer(
    help="dx - run one service locally, the rest in Kubernetes",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def configure(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Show debug logs on stderr")
    ] = False,
) -> None:
    """Configure logging before any command runs."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


app.command(name="install")(install)
app.command(name="uninstall")(uninstall)
app.command(name="status")(status)
app.add_typer(context_app, name="context")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
