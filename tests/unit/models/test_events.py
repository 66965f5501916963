"""Unit tests for event and result models."""

import asyncio
from pathlib import Path

import pytest
from pydantic import ValidationError
from watchrun.models import ChangeKind, CommandResult, FileChangeEvent, PendingBurst


class TestFileChangeEvent:
    """Test cases for FileChangeEvent."""

    def test_create_event(self):
        event = FileChangeEvent(ChangeKind.WRITE, Path("/test/a.txt"))

        assert event.kind is ChangeKind.WRITE
        assert event.path == Path("/test/a.txt")
        assert event.basename == "a.txt"
        assert event.timestamp > 0
        assert not event.is_permission_only

    def test_kind_from_string(self):
        event = FileChangeEvent("chmod", "a.txt")

        assert event.kind is ChangeKind.CHMOD
        assert event.path == Path("a.txt")
        assert event.is_permission_only

    def test_invalid_kind(self):
        with pytest.raises(ValueError):
            FileChangeEvent("truncate", Path("a.txt"))

    def test_event_string_representation(self):
        event = FileChangeEvent(ChangeKind.REMOVE, Path("/test/a.txt"))

        assert str(event) == "FileChangeEvent(remove: /test/a.txt)"

    def test_equality_ignores_timestamp(self):
        first = FileChangeEvent(ChangeKind.WRITE, Path("a.txt"), timestamp=1.0)
        second = FileChangeEvent(ChangeKind.WRITE, Path("a.txt"), timestamp=2.0)

        assert first == second
        assert len({first, second}) == 1
        assert first != FileChangeEvent(ChangeKind.CREATE, Path("a.txt"))


class TestPendingBurst:
    """Test cases for PendingBurst."""

    def test_delay(self):
        burst = PendingBurst(trigger=FileChangeEvent(ChangeKind.WRITE, Path("a.txt")), armed_at=1.0, fire_at=1.1)

        assert burst.delay == pytest.approx(0.1)
        assert burst.event_count == 1

    def test_cancel_without_task(self):
        burst = PendingBurst(trigger=FileChangeEvent(ChangeKind.WRITE, Path("a.txt")), armed_at=0.0, fire_at=0.1)

        burst.cancel()

    @pytest.mark.asyncio
    async def test_cancel_task(self):
        burst = PendingBurst(trigger=FileChangeEvent(ChangeKind.WRITE, Path("a.txt")), armed_at=0.0, fire_at=0.1)
        burst.task = asyncio.create_task(asyncio.sleep(10))

        burst.cancel()
        await asyncio.sleep(0)

        assert burst.task.cancelled()


class TestCommandResult:
    """Test cases for CommandResult."""

    def test_success(self):
        result = CommandResult(command="make", exit_code=0, started_at=1.0, finished_at=1.5)

        assert result.succeeded
        assert result.duration == pytest.approx(0.5)

    def test_non_zero_exit(self):
        result = CommandResult(command="make", exit_code=2, started_at=1.0, finished_at=1.5)

        assert not result.succeeded

    def test_spawn_failure(self):
        result = CommandResult(command="make", error="No such file", started_at=1.0, finished_at=1.0)

        assert result.exit_code is None
        assert not result.succeeded
        assert result.duration == 0.0

    def test_frozen(self):
        result = CommandResult(command="make", exit_code=0, started_at=1.0, finished_at=1.5)

        with pytest.raises(ValidationError):
            result.exit_code = 1

    def test_serialization_includes_computed_fields(self):
        data = CommandResult(command="make", exit_code=0, started_at=1.0, finished_at=2.0).model_dump()

        assert data["succeeded"] is True
        assert data["duration"] == pytest.approx(1.0)
