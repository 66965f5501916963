"""
Abstract interfaces for the collaborators of the execution scheduler.

These interfaces define the contracts for the notification source and the
command runner, enabling dependency injection for testing and alternative
implementations.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

from watchrun.models import CommandResult, FileChangeEvent, MonitoringError


class INotificationSource(ABC):
    """Interface for a source of file change notifications."""

    @property
    @abstractmethod
    def events(self) -> "asyncio.Queue[FileChangeEvent]":
        """Queue of change events, delivered on the bound event loop."""
        pass

    @property
    @abstractmethod
    def errors(self) -> "asyncio.Queue[MonitoringError]":
        """Queue of non-fatal watch errors, delivered on the bound event loop."""
        pass

    @abstractmethod
    def add(self, path: Path) -> None:
        """
        Subscribe to changes of a single file.

        Adding a path that is already subscribed must be harmless.

        Args:
            path: File to watch

        Raises:
            MonitoringError: If the path cannot be watched
        """
        pass

    @abstractmethod
    def start(self, loop: asyncio.AbstractEventLoop) -> None:
        """
        Start delivering events onto the given loop.

        Raises:
            InitializationError: If the underlying watcher cannot start
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop delivering events and release watcher resources."""
        pass


class ICommandRunner(ABC):
    """Interface for running the user command."""

    @abstractmethod
    def run(self, command: str, files: Sequence[Path]) -> CommandResult:
        """
        Run the command to completion, streaming its output.

        Command failures are reported in the result rather than raised.

        Args:
            command: Command string, executed verbatim
            files: The full watch set, used for log context

        Returns:
            Result of the execution
        """
        pass
