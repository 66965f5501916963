"""Unit tests for the watchdog-backed notification source."""

import asyncio
import os
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
from watchdog.events import FileSystemEvent
from watchrun.models import ChangeKind, InitializationError, MonitoringError
from watchrun.monitoring import FileNotificationSource


def _event(src_path, is_directory=False, dest_path=None):
    event = Mock(spec=FileSystemEvent)
    event.src_path = str(src_path)
    event.is_directory = is_directory
    if dest_path is not None:
        event.dest_path = str(dest_path)
    return event


class TestFileNotificationSource:
    """Test cases for FileNotificationSource."""

    @pytest.fixture
    def source(self):
        return FileNotificationSource()

    @pytest.fixture
    def watched_file(self, tmp_path):
        path = tmp_path / "a.txt"
        path.write_text("v1")
        return path

    def test_initialization(self, source):
        """Test notification source initial state."""
        assert source._observer is None
        assert source.get_watched_paths() == []
        assert source.get_watched_directories() == []
        assert not source.is_watching
        assert source.events.empty()
        assert source.errors.empty()

    @patch('watchrun.monitoring.file_watcher.Observer')
    def test_add_schedules_parent_directory(self, mock_observer_class, source, watched_file):
        """Test subscribing a file watches its directory non-recursively."""
        mock_observer = Mock()
        mock_observer_class.return_value = mock_observer

        source.add(watched_file)

        mock_observer.schedule.assert_called_once_with(source, os.path.abspath(watched_file.parent), recursive=False)
        assert source.get_watched_paths() == [str(watched_file)]
        assert source.get_watched_directories() == [os.path.abspath(watched_file.parent)]

    @patch('watchrun.monitoring.file_watcher.Observer')
    def test_add_is_idempotent(self, mock_observer_class, source, watched_file, tmp_path):
        """Test re-adding a watched file and adding a sibling reuse the directory watch."""
        mock_observer = Mock()
        mock_observer_class.return_value = mock_observer
        sibling = tmp_path / "b.txt"
        sibling.write_text("b")

        source.add(watched_file)
        source.add(watched_file)
        source.add(sibling)

        mock_observer.schedule.assert_called_once()
        assert source.get_watched_paths() == [str(watched_file), str(sibling)]

    def test_add_missing_file(self, source, tmp_path):
        """Test subscribing a file that does not exist."""
        with pytest.raises(MonitoringError) as exc_info:
            source.add(tmp_path / "missing.txt")

        assert "File does not exist" in str(exc_info.value)
        assert source.get_watched_paths() == []

    def test_add_directory(self, source, tmp_path):
        """Test subscribing a directory instead of a file."""
        with pytest.raises(MonitoringError) as exc_info:
            source.add(tmp_path)

        assert "Path is a directory" in str(exc_info.value)

    @patch('watchrun.monitoring.file_watcher.Observer')
    def test_add_schedule_failure(self, mock_observer_class, source, watched_file):
        """Test an observer refusing the watch is reported as MonitoringError."""
        mock_observer = Mock()
        mock_observer.schedule.side_effect = OSError("inotify watch limit reached")
        mock_observer_class.return_value = mock_observer

        with pytest.raises(MonitoringError) as exc_info:
            source.add(watched_file)

        assert "inotify watch limit reached" in str(exc_info.value)
        assert isinstance(exc_info.value.cause, OSError)

    @patch('watchrun.monitoring.file_watcher.Observer')
    def test_start_failure(self, mock_observer_class, source):
        """Test an observer that cannot start raises InitializationError."""
        mock_observer = Mock()
        mock_observer.is_alive.return_value = False
        mock_observer.start.side_effect = OSError("inotify instance limit reached")
        mock_observer_class.return_value = mock_observer

        with pytest.raises(InitializationError):
            source.start(Mock())

    @patch('watchrun.monitoring.file_watcher.Observer')
    def test_stop(self, mock_observer_class, source, watched_file):
        """Test stopping the observer."""
        mock_observer = Mock()
        mock_observer.is_alive.return_value = True
        mock_observer_class.return_value = mock_observer
        source.add(watched_file)

        source.stop()
        source.stop()

        mock_observer.stop.assert_called_once()
        mock_observer.join.assert_called_once_with(timeout=5.0)
        assert source.get_watched_directories() == []

    @pytest.mark.asyncio
    @patch('watchrun.monitoring.file_watcher.Observer')
    async def test_event_translation(self, mock_observer_class, source, watched_file):
        """Test watchdog callbacks become FileChangeEvents on the loop."""
        mock_observer_class.return_value = Mock(is_alive=Mock(return_value=False))
        source.add(watched_file)
        source.start(asyncio.get_running_loop())

        watched_file.write_text("version two")
        source.on_modified(_event(watched_file))
        source.on_deleted(_event(watched_file))
        watched_file.write_text("v3")
        source.on_created(_event(watched_file))
        await asyncio.sleep(0)

        kinds = [source.events.get_nowait().kind for _ in range(3)]
        assert kinds == [ChangeKind.WRITE, ChangeKind.REMOVE, ChangeKind.CREATE]

    @pytest.mark.asyncio
    @patch('watchrun.monitoring.file_watcher.Observer')
    async def test_metadata_only_change_is_chmod(self, mock_observer_class, source, watched_file):
        """Test a modify event with unchanged content fingerprint is reported as chmod."""
        mock_observer_class.return_value = Mock(is_alive=Mock(return_value=False))
        source.add(watched_file)
        source.start(asyncio.get_running_loop())

        os.chmod(watched_file, 0o600)
        source.on_modified(_event(watched_file))
        await asyncio.sleep(0)

        event = source.events.get_nowait()
        assert event.kind is ChangeKind.CHMOD
        assert event.path == watched_file

    @pytest.mark.asyncio
    @patch('watchrun.monitoring.file_watcher.Observer')
    async def test_move_events(self, mock_observer_class, source, watched_file, tmp_path):
        """Test an atomic save (temp file renamed over the target) reports a create."""
        mock_observer_class.return_value = Mock(is_alive=Mock(return_value=False))
        source.add(watched_file)
        source.start(asyncio.get_running_loop())

        temp = tmp_path / ".a.txt.swp"
        source.on_moved(_event(temp, dest_path=watched_file))
        source.on_moved(_event(watched_file, dest_path=tmp_path / "a.txt.bak"))
        await asyncio.sleep(0)

        first = source.events.get_nowait()
        second = source.events.get_nowait()
        assert first.kind is ChangeKind.CREATE
        assert second.kind is ChangeKind.RENAME
        assert source.events.empty()

    @pytest.mark.asyncio
    @patch('watchrun.monitoring.file_watcher.Observer')
    async def test_unwatched_and_directory_events_ignored(self, mock_observer_class, source, watched_file, tmp_path):
        """Test events for other files and for directories are dropped."""
        mock_observer_class.return_value = Mock(is_alive=Mock(return_value=False))
        source.add(watched_file)
        source.start(asyncio.get_running_loop())

        source.on_modified(_event(tmp_path / "other.txt"))
        source.on_modified(_event(tmp_path, is_directory=True))
        source.on_deleted(_event(tmp_path, is_directory=True))
        await asyncio.sleep(0)

        assert source.events.empty()

    @pytest.mark.asyncio
    @patch('watchrun.monitoring.file_watcher.Observer')
    async def test_translation_errors_go_to_error_queue(self, mock_observer_class, source, watched_file):
        """Test failures while handling a callback are delivered as errors."""
        mock_observer_class.return_value = Mock(is_alive=Mock(return_value=False))
        source.add(watched_file)
        source.start(asyncio.get_running_loop())

        with patch('watchrun.monitoring.file_watcher._fingerprint', side_effect=RuntimeError("stat exploded")):
            source.on_modified(_event(watched_file))
        await asyncio.sleep(0)

        assert source.events.empty()
        error = source.errors.get_nowait()
        assert isinstance(error, MonitoringError)
        assert "stat exploded" in str(error)

    def test_events_dropped_before_start(self, source, watched_file):
        """Test callbacks before a loop is bound do not raise."""
        with patch('watchrun.monitoring.file_watcher.Observer'):
            source.add(watched_file)

        source.on_modified(_event(watched_file))

        assert source.events.empty()


class TestFileNotificationSourceIntegration:
    """Exercise the real watchdog observer against a temporary directory."""

    @pytest.mark.asyncio
    async def test_real_write_is_delivered(self, tmp_path):
        target = tmp_path / "a.txt"
        target.write_text("v1")
        source = FileNotificationSource()
        source.add(target)
        source.start(asyncio.get_running_loop())
        try:
            await asyncio.sleep(0.1)
            target.write_text("v2 with more content")
            event = await asyncio.wait_for(source.events.get(), timeout=5.0)
        finally:
            source.stop()

        assert event.path == Path(target)
        assert event.kind in (ChangeKind.WRITE, ChangeKind.CREATE)
