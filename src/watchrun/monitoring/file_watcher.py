"""
File system watcher producing change notifications for individual files.

watchdog observes directories, so each subscribed file is watched through a
non-recursive watch on its parent directory and events for other entries in
that directory are ignored. Because the directory watch survives a file being
deleted and recreated, re-subscribing a file is always safe.
"""

import asyncio
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from watchrun.core.interfaces import INotificationSource
from watchrun.models import ChangeKind, FileChangeEvent, InitializationError, MonitoringError

logger = logging.getLogger(__name__)


def _fingerprint(path: Path) -> tuple[int, int] | None:
    """Content fingerprint used to tell real writes from metadata-only changes."""
    try:
        st = os.stat(path)
    except OSError:
        return None
    return (st.st_mtime_ns, st.st_size)


@dataclass
class _Subscription:
    path: Path  # as given by the caller, used in emitted events
    fingerprint: tuple[int, int] | None


class FileNotificationSource(FileSystemEventHandler, INotificationSource):
    """
    watchdog-backed notification source for a set of files.

    Raw watchdog callbacks run on the observer thread; they are translated
    into FileChangeEvent objects and handed to the asyncio loop bound in
    :meth:`start` through ``call_soon_threadsafe``.
    """

    def __init__(self):
        super().__init__()
        self._lock = threading.Lock()
        self._subscriptions: dict[str, _Subscription] = {}
        self._watched_dirs: set[str] = set()

        # Observer for watchdog
        self._observer: Observer | None = None

        self._events: asyncio.Queue[FileChangeEvent] = asyncio.Queue()
        self._errors: asyncio.Queue[MonitoringError] = asyncio.Queue()

        # Loop the queues are fed on
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def events(self) -> "asyncio.Queue[FileChangeEvent]":
        return self._events

    @property
    def errors(self) -> "asyncio.Queue[MonitoringError]":
        return self._errors

    def add(self, path: Path) -> None:
        """
        Subscribe to changes of a file.

        Args:
            path: File to watch

        Raises:
            MonitoringError: If the file does not exist or cannot be watched
        """
        path = Path(path)
        key = os.path.abspath(path)

        if not path.exists():
            raise MonitoringError(f"File does not exist: {path}", path=str(path), operation="add")
        if path.is_dir():
            raise MonitoringError(f"Path is a directory: {path}", path=str(path), operation="add")

        directory = os.path.dirname(key)
        try:
            with self._lock:
                if self._observer is None:
                    self._observer = Observer()

                if directory not in self._watched_dirs:
                    self._observer.schedule(self, directory, recursive=False)
                    self._watched_dirs.add(directory)
                    logger.debug("Watching directory %s", directory)

                existing = self._subscriptions.get(key)
                if existing is None:
                    self._subscriptions[key] = _Subscription(path=path, fingerprint=_fingerprint(path))
                    logger.info("Subscribed to %s", path)
                else:
                    existing.fingerprint = _fingerprint(path)
                    logger.debug("Refreshed subscription for %s", path)

        except Exception as e:
            logger.error("Failed to watch %s: %s", path, e)
            raise MonitoringError(
                f"Failed to watch file: {e}",
                path=str(path),
                operation="add",
                underlying_error=e,
            ) from e

    def start(self, loop: asyncio.AbstractEventLoop) -> None:
        """
        Start the observer thread.

        Args:
            loop: Event loop the event and error queues are fed on

        Raises:
            InitializationError: If the observer cannot be started
        """
        self._loop = loop
        try:
            with self._lock:
                if self._observer is None:
                    self._observer = Observer()
                if not self._observer.is_alive():
                    self._observer.start()
            logger.info("File monitoring observer started (%d file(s))", len(self._subscriptions))
        except Exception as e:
            logger.error("Failed to start file monitoring: %s", e)
            raise InitializationError(
                f"Failed to start file watcher: {e}",
                component="FileNotificationSource",
                initialization_stage="observer_start",
                underlying_error=e,
            ) from e

    def stop(self) -> None:
        """Stop the observer thread. Safe to call more than once."""
        observer = self._observer
        if observer is not None and observer.is_alive():
            observer.stop()
            observer.join(timeout=5.0)
            logger.info("File monitoring stopped")
        self._observer = None
        with self._lock:
            self._watched_dirs.clear()

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle file creation events."""
        if not event.is_directory:
            self._handle_file_event(ChangeKind.CREATE, event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        """Handle file modification events, separating metadata-only changes."""
        if not event.is_directory:
            self._handle_file_event(ChangeKind.WRITE, event.src_path)

    def on_closed(self, event: FileSystemEvent) -> None:
        """Handle close-after-write events."""
        if not event.is_directory:
            self._handle_file_event(ChangeKind.WRITE, event.src_path, check_metadata=False)

    def on_deleted(self, event: FileSystemEvent) -> None:
        """Handle file deletion events."""
        if not event.is_directory:
            self._handle_file_event(ChangeKind.REMOVE, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        """Handle move events: the source was renamed away, the destination was created."""
        if event.is_directory:
            return
        self._handle_file_event(ChangeKind.RENAME, event.src_path)
        dest_path = getattr(event, 'dest_path', None)
        if dest_path:
            self._handle_file_event(ChangeKind.CREATE, dest_path)

    def _handle_file_event(self, kind: ChangeKind, raw_path: str | bytes, check_metadata: bool = True) -> None:
        """
        Translate a watchdog callback into a FileChangeEvent.

        Args:
            kind: Change kind implied by the callback
            raw_path: Path reported by watchdog
            check_metadata: Whether a write with an unchanged fingerprint is reported as CHMOD
        """
        try:
            key = os.path.abspath(os.fsdecode(raw_path))
            with self._lock:
                subscription = self._subscriptions.get(key)
                if subscription is None:
                    return

                if kind in (ChangeKind.REMOVE, ChangeKind.RENAME):
                    subscription.fingerprint = None
                else:
                    current = _fingerprint(subscription.path)
                    if (
                        kind is ChangeKind.WRITE
                        and check_metadata
                        and current is not None
                        and current == subscription.fingerprint
                    ):
                        kind = ChangeKind.CHMOD
                    subscription.fingerprint = current

                change = FileChangeEvent(kind, subscription.path)

            logger.debug("File event: %s", change)
            self._deliver(self._events, change)

        except Exception as e:
            logger.error("Error handling %s event for %r: %s", kind.value, raw_path, e)
            self._deliver(
                self._errors,
                MonitoringError(
                    f"Error handling {kind.value} event: {e}",
                    path=os.fsdecode(raw_path),
                    operation="handle_event",
                    underlying_error=e,
                ),
            )

    def _deliver(self, queue: asyncio.Queue, item) -> None:
        """Hand an item over to the bound event loop."""
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.debug("No event loop bound, dropping %s", item)
            return
        try:
            loop.call_soon_threadsafe(queue.put_nowait, item)
        except RuntimeError:
            # loop closed between the check and the call
            logger.debug("Event loop closed, dropping %s", item)

    @property
    def is_watching(self) -> bool:
        """Check if currently watching for file changes."""
        return self._observer is not None and self._observer.is_alive()

    def get_watched_paths(self) -> list[str]:
        """Get the subscribed files, in subscription order."""
        with self._lock:
            return [str(sub.path) for sub in self._subscriptions.values()]

    def get_watched_directories(self) -> list[str]:
        """Get the directories the observer is scheduled on."""
        with self._lock:
            return sorted(self._watched_dirs)
