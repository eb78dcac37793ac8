"""Console output and error handling shared by dx commands."""

from collections.abc import Callable, Iterable
from functools import wraps

import typer
from rich.console import Console, ConsoleRenderable
from rich.panel import Panel
from rich.status import Status
from rich.table import Table

from dx.infra.errors import DeploymentError


class CLIConsole:
    """Rich console wrapper for consistent CLI output."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def print(self, msg: ConsoleRenderable | str | None = None) -> None:
        self.console.print(msg)

    def status(self, status: str) -> Status:
        return self.console.status(status)

    def info(self, msg: str) -> None:
        self.console.print(f"[cyan]ℹ[/cyan]  {msg}")

    def ok(self, msg: str) -> None:
        self.console.print(f"[green]✅[/green] {msg}")

    def error(self, msg: str) -> None:
        self.console.print(f"[red]❌[/red] {msg}")

    def warn(self, msg: str) -> None:
        self.console.print(f"[yellow]⚠️[/yellow]  {msg}")

    def print_header(self, title: str, style: str = "blue") -> None:
        """Print a styled header panel."""
        self.console.print(
            Panel.fit(f"[bold {style}]{title}[/bold {style}]", border_style=style)
        )

    def print_results(
        self, title: str, results: Iterable[tuple[str, str | None]]
    ) -> None:
        """Print a per-service outcome table.

        Args:
            title: Table title
            results: ``(service, error)`` pairs; ``error`` is None on success
        """
        table = Table(title=title, show_lines=False)
        table.add_column("Service", style="bold")
        table.add_column("Result")
        table.add_column("Details", style="dim", overflow="fold")
        for name, error in results:
            if error is None:
                table.add_row(name, "[green]ok[/green]", "")
            else:
                table.add_row(name, "[red]failed[/red]", error)
        self.console.print(table)

    def handle_error(
        self, message: str, details: str | None = None, exit_code: int = 1
    ) -> None:
        """Print an error with optional details panel, then exit.

        Raises:
            typer.Exit: Always, with ``exit_code``
        """
        self.error(f"[bold red]{message}[/bold red]")
        if details:
            self.console.print(Panel(details, title="Details", border_style="red"))
        raise typer.Exit(exit_code)


def with_error_handling(func: Callable[..., None]) -> Callable[..., None]:
    """Decorator turning dx errors into a formatted message and exit code.

    ``DeploymentError`` exits with 1, ``KeyboardInterrupt`` with 130.
    """

    @wraps(func)
    def wrapper(*args: object, **kwargs: object) -> None:
        try:
            func(*args, **kwargs)
        except DeploymentError as e:
            console.handle_error(e.message, e.details)
        except KeyboardInterrupt:
            console.print("\n[dim]Operation cancelled by user.[/dim]")
            raise typer.Exit(130) from None

    return wrapper


# Shared console instance for consistent output
console = CLIConsole()
