"""Command runner for executing shell commands.

This module provides the base command execution functionality used by
all specialized command modules.
"""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from pathlib import Path

from loguru import logger

from .types import CommandResult

# Exit status shells report for a command that cannot be executed
COMMAND_NOT_RUNNABLE = 127


class CommandRunner:
    """Low-level command executor with consistent result handling.

    All specialized command modules (Helm, kubectl) use this runner for
    actual command execution. A tool that cannot be started, for example
    because it is not on ``PATH``, is reported as a failed CommandResult
    like any other non-zero exit, so callers only ever inspect the result.
    """

    def __init__(self, working_dir: Path | None = None) -> None:
        """Initialize the command runner.

        Args:
            working_dir: Default working directory for commands.
                         Falls back to the current directory.
        """
        self.working_dir = working_dir

    def run(self, cmd: Sequence[str], *, cwd: Path | None = None) -> CommandResult:
        """Execute a shell command and return structured result.

        Args:
            cmd: Command and arguments as a sequence
            cwd: Working directory (defaults to working_dir)

        Returns:
            CommandResult with success status, output, and return code
        """
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                list(cmd),
                cwd=cwd or self.working_dir,
                capture_output=True,
                text=True,
            )
        except OSError as e:
            logger.debug(f"Could not start {cmd[0]}: {e}")
            return CommandResult(
                success=False,
                stderr=f"Failed to run {cmd[0]}: {e}",
                returncode=COMMAND_NOT_RUNNABLE,
            )

        return CommandResult(
            success=result.returncode == 0,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            returncode=result.returncode,
        )
