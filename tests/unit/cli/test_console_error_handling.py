from unittest.mock import MagicMock

import pytest
import typer
from rich.console import Console

from dx.cli.shared.console import CLIConsole, with_error_handling
from dx.infra.errors import DeploymentError, SecurityRejectedError


def test_with_error_handling_handles_deployment_error():
    @with_error_handling
    def _command() -> None:
        raise DeploymentError("Boom", details="extra")

    with pytest.raises(typer.Exit) as excinfo:
        _command()

    assert excinfo.value.exit_code == 1


def test_with_error_handling_handles_subclasses():
    @with_error_handling
    def _command() -> None:
        raise SecurityRejectedError("--post-renderer")

    with pytest.raises(typer.Exit) as excinfo:
        _command()

    assert excinfo.value.exit_code == 1


def test_with_error_handling_handles_keyboard_interrupt():
    @with_error_handling
    def _command() -> None:
        raise KeyboardInterrupt

    with pytest.raises(typer.Exit) as excinfo:
        _command()

    assert excinfo.value.exit_code == 130


def test_with_error_handling_lets_other_errors_through():
    @with_error_handling
    def _command() -> None:
        raise ValueError("bug")

    with pytest.raises(ValueError):
        _command()


def test_print_results_renders_each_service():
    console = Console(record=True, width=120)
    cli_console = CLIConsole(console)

    cli_console.print_results("Install summary", [("orders", None), ("payments", "Failed to install")])

    text = console.export_text()
    assert "orders" in text
    assert "payments" in text
    assert "Failed to install" in text


def test_handle_error_prints_details_panel():
    console = MagicMock()
    cli_console = CLIConsole(console)

    with pytest.raises(typer.Exit) as excinfo:
        cli_console.handle_error("Nope", details="tool output", exit_code=3)

    assert excinfo.value.exit_code == 3
    assert console.print.call_count == 2
