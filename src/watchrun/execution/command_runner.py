"""
Shell command runner.

Runs the user command through a shell so pipes and redirects work, with the
child's stdout/stderr attached directly to ours so output streams live.
"""

import logging
import subprocess
import time
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console
from rich.text import Text

from watchrun.core.interfaces import ICommandRunner
from watchrun.models import CommandExecutionError, CommandResult

logger = logging.getLogger(__name__)


class ShellCommandRunner(ICommandRunner):
    """Runs a command with ``<shell> -c`` and reports how it ended."""

    def __init__(self, shell: str = "sh", console: Console | None = None):
        """
        Initialize the runner.

        Args:
            shell: Shell executable; the command is passed to it with ``-c``
            console: Console for status lines (stdout by default)
        """
        self.shell = shell
        self.console = console or Console(highlight=False, soft_wrap=True)

    def run(self, command: str, files: Sequence[Path]) -> CommandResult:
        """
        Run the command to completion.

        Args:
            command: Command string, executed verbatim by the shell
            files: The full watch set, shown as context on every status line

        Returns:
            CommandResult; a non-zero exit or a spawn failure is reported, never raised

        Raises:
            CommandExecutionError: If the command string is empty
        """
        if not command.strip():
            raise CommandExecutionError("Refusing to run an empty command", command=command)

        label = ", ".join(str(f) for f in files)
        self.console.print(Text(f"[{label}] Executing: {command}", style="bold"))

        started = time.monotonic()
        exit_code: int | None = None
        error: str | None = None
        try:
            completed = subprocess.run([self.shell, "-c", command], check=False)
            exit_code = completed.returncode
        except OSError as e:
            error = str(e)
            logger.error("Failed to spawn %s for %r: %s", self.shell, command, e)
        finished = time.monotonic()

        if error is not None:
            self.console.print(Text(f"[{label}] Command error: {error}", style="red"))
        elif exit_code != 0:
            self.console.print(Text(f"[{label}] Command exited with code {exit_code}", style="yellow"))
        self.console.print()

        logger.debug("Command %r finished in %.3fs (exit code: %s)", command, finished - started, exit_code)

        return CommandResult(
            command=command,
            exit_code=exit_code,
            error=error,
            started_at=started,
            finished_at=finished,
        )
