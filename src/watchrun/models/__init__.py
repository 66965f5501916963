"""Data models and exceptions for watchrun."""

from watchrun.models.events import ChangeKind, CommandResult, FileChangeEvent, PendingBurst
from watchrun.models.exceptions import (
    ArgumentError,
    BaseError,
    CommandExecutionError,
    ConfigurationError,
    InitializationError,
    MonitoringError,
)

__all__ = [
    "ChangeKind",
    "FileChangeEvent",
    "PendingBurst",
    "CommandResult",
    "BaseError",
    "ArgumentError",
    "ConfigurationError",
    "MonitoringError",
    "CommandExecutionError",
    "InitializationError",
]
