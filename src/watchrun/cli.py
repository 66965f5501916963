"""
Command-line entry point for watchrun.

    watchrun [OPTIONS] <path-or-glob>... -- <command...>

Everything after the first ``--`` is the command; it is joined with spaces
and run through the shell, so pipes and redirects work.
"""

import asyncio
import glob
import logging
import logging.config
import os
import sys
from collections.abc import Sequence
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.text import Text

from watchrun import __version__
from watchrun.config import WatchConfig
from watchrun.core.interfaces import INotificationSource
from watchrun.execution import ShellCommandRunner
from watchrun.models import ArgumentError, ConfigurationError, InitializationError, MonitoringError
from watchrun.models.exceptions import raise_argument_error
from watchrun.monitoring import ExecutionScheduler, FileNotificationSource, ShutdownSignal, WatchLoop

logger = logging.getLogger(__name__)

SEPARATOR = "--"
_COMMAND_KEY = "watchrun.command_args"

USAGE = (
    "Usage: watchrun <file1> [file2 ...] -- <command>\n"
    "Example: watchrun main.c utils.c -- 'make'\n"
    "Example: watchrun '*.go' -- 'go build'"
)


class SeparatorCommand(click.Command):
    """click command that keeps everything after the first ``--`` for itself."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        args = list(args)
        if SEPARATOR in args:
            index = args.index(SEPARATOR)
            ctx.meta[_COMMAND_KEY] = args[index + 1 :]
            args = args[:index]
        else:
            ctx.meta[_COMMAND_KEY] = None

        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            # malformed arguments always exit with 1
            e.exit_code = ArgumentError.exit_code
            raise


def split_command(paths: Sequence[str], command_args: Sequence[str] | None) -> str:
    """
    Validate both sides of the separator and build the command string.

    Args:
        paths: Arguments before ``--``
        command_args: Arguments after ``--``, or None when ``--`` is missing

    Returns:
        The command, arguments joined by single spaces

    Raises:
        ArgumentError: If ``--`` is missing or either side is empty
    """
    if command_args is None or not paths or not command_args:
        raise_argument_error("Must specify files before -- and command after --", argument=SEPARATOR)
    return " ".join(command_args)


def resolve_watch_set(patterns: Sequence[str]) -> list[Path]:
    """
    Expand glob patterns into the list of files to watch.

    A pattern that matches nothing is taken as a literal filename. Files that
    cannot be stat'ed are reported on stderr and left out.

    Args:
        patterns: Paths or glob patterns, in command-line order

    Returns:
        Distinct, existing paths in first-seen order

    Raises:
        ArgumentError: If a pattern cannot be processed
    """
    watch_set: list[Path] = []
    seen: set[str] = set()

    for pattern in patterns:
        if "\x00" in pattern:
            raise ArgumentError(f"Error processing pattern {pattern!r}: embedded null byte", argument=pattern)
        try:
            matches = sorted(glob.glob(pattern, include_hidden=True))
        except (OSError, ValueError) as e:
            raise ArgumentError(f"Error processing pattern '{pattern}': {e}", argument=pattern) from e

        if not matches:
            matches = [pattern]

        for candidate in matches:
            try:
                os.stat(candidate)
            except (OSError, ValueError) as e:
                click.echo(f"Warning: Cannot stat file '{candidate}': {e}", err=True)
                continue

            key = os.path.abspath(candidate)
            if key in seen:
                continue
            seen.add(key)
            watch_set.append(Path(candidate))

    logger.debug("Resolved %d pattern(s) to %d file(s)", len(patterns), len(watch_set))
    return watch_set


def subscribe_files(source: INotificationSource, files: Sequence[Path]) -> list[Path]:
    """
    Subscribe each file, dropping the ones the source rejects.

    Args:
        source: Notification source
        files: Candidate files

    Returns:
        Files that were subscribed successfully
    """
    watched = []
    for file in files:
        try:
            source.add(file)
        except MonitoringError as e:
            cause = e.cause or e.message
            click.echo(f"Error watching '{file}': {cause}", err=True)
            continue
        watched.append(file)
    return watched


def print_banner(console: Console, files: Sequence[Path], command: str) -> None:
    names = ", ".join(str(f) for f in files)
    console.print(Text(f"Watching {len(files)} file(s): {names}", style="bold"))
    console.print(Text(f"Will execute: {command}"))
    console.print(Text("Press Ctrl+C to stop.\n"))


async def run_watch(
    config: WatchConfig,
    command: str,
    files: Sequence[Path],
    source: INotificationSource,
    console: Console,
    shutdown: ShutdownSignal | None = None,
) -> int:
    """
    Start the notification source and run the watch loop until shutdown.

    Returns:
        Process exit code
    """
    loop = asyncio.get_running_loop()
    shutdown = shutdown or ShutdownSignal()

    try:
        source.start(loop)
    except InitializationError as e:
        logger.critical("%s", e)
        return 1

    shutdown.install(loop)
    try:
        scheduler = ExecutionScheduler(
            config=config,
            command=command,
            watch_set=files,
            runner=ShellCommandRunner(shell=config.shell, console=console),
            source=source,
            console=console,
        )
        await WatchLoop(scheduler, source, shutdown, console=console).run()
        logger.info("Scheduler stats: %s", scheduler.get_stats())
    finally:
        shutdown.uninstall()
        source.stop()

    return 0


@click.command(
    cls=SeparatorCommand,
    context_settings={"help_option_names": ["-h", "--help"]},
    epilog=USAGE,
)
@click.argument("paths", nargs=-1)
@click.option(
    "--debounce-ms",
    type=click.IntRange(min=1),
    default=100,
    show_default=True,
    help="Quiet time after the last change before the command runs.",
)
@click.option(
    "--min-interval-ms",
    type=click.IntRange(min=0),
    default=500,
    show_default=True,
    help="Minimum time between the end of one run and the start of the next.",
)
@click.option("--shell", default="sh", show_default=True, help="Shell used to run the command (with -c).")
@click.option("-v", "--verbose", count=True, help="Increase logging verbosity; repeat for more detail.")
@click.version_option(__version__, prog_name="watchrun")
@click.pass_context
def cli(ctx: click.Context, paths, debounce_ms, min_interval_ms, shell, verbose):
    """Watch files and re-run a command whenever they change."""
    try:
        command = split_command(paths, ctx.meta.get(_COMMAND_KEY))

        try:
            config = WatchConfig.from_cli(
                debounce_ms=debounce_ms,
                min_interval_ms=min_interval_ms,
                shell=shell,
                verbosity=verbose,
            )
        except (ValidationError, ConfigurationError) as e:
            raise ArgumentError(f"Invalid option: {e}", show_usage=False) from e

        logging.config.dictConfig(config.get_log_config())

        files = resolve_watch_set(paths)
        if not files:
            raise ArgumentError("No valid files to watch", show_usage=False)

        source = FileNotificationSource()
        files = subscribe_files(source, files)
        if not files:
            raise ArgumentError("No valid files to watch", show_usage=False)

    except ArgumentError as e:
        click.echo(f"Error: {e.message}", err=True)
        if e.show_usage:
            click.echo(USAGE, err=True)
        ctx.exit(e.exit_code)

    console = Console(highlight=False, soft_wrap=True)
    print_banner(console, files, command)

    ctx.exit(asyncio.run(run_watch(config, command, files, source, console)))


def main(argv: Sequence[str] | None = None) -> None:
    """Console script entry point."""
    cli.main(args=list(sys.argv[1:] if argv is None else argv), prog_name="watchrun")


if __name__ == "__main__":
    main()
