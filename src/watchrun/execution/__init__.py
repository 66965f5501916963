"""Command execution for watchrun."""

from .command_runner import ShellCommandRunner

__all__ = [
    "ShellCommandRunner",
]
