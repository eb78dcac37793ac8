"""Data types for shell command results."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["CommandResult"]


@dataclass
class CommandResult:
    """Result of a command execution.

    Attributes:
        success: Whether the command exited with code 0
        stdout: Captured standard output
        stderr: Captured standard error
        returncode: Process exit code
    """

    success: bool
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0

    @property
    def combined_output(self) -> str:
        """Stdout and stderr joined, for attaching to error details."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part).strip()
