"""
Monitoring package: change notifications, event coalescing and the watch loop.

This package turns raw file system notifications into debounced,
rate-limited executions of the user command.
"""

from .file_watcher import FileNotificationSource
from .scheduler import ExecutionScheduler
from .shutdown import ShutdownSignal
from .watch_loop import WatchLoop

__all__ = [
    "FileNotificationSource",
    "ExecutionScheduler",
    "ShutdownSignal",
    "WatchLoop",
]
