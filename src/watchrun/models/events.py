"""
Data models for change notifications, pending bursts and command results.

These are the values that flow between the notification source, the
execution scheduler and the command runner.
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, computed_field


class ChangeKind(str, Enum):
    """Kind of change reported for a watched file."""

    WRITE = "write"
    CREATE = "create"
    REMOVE = "remove"
    RENAME = "rename"
    CHMOD = "chmod"  # permission/metadata only
    OTHER = "other"


class FileChangeEvent:
    """Represents a single raw change notification for a watched file."""

    def __init__(self, kind: ChangeKind, path: Path, timestamp: float | None = None):
        self.kind = ChangeKind(kind)
        self.path = Path(path)
        self.timestamp = time.monotonic() if timestamp is None else timestamp

    @property
    def basename(self) -> str:
        return self.path.name

    @property
    def is_permission_only(self) -> bool:
        return self.kind is ChangeKind.CHMOD

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FileChangeEvent):
            return NotImplemented
        return self.kind is other.kind and self.path == other.path

    def __hash__(self) -> int:
        return hash((self.kind, self.path))

    def __str__(self) -> str:
        return f"FileChangeEvent({self.kind.value}: {self.path})"

    __repr__ = __str__


@dataclass
class PendingBurst:
    """
    The single armed debounce timer.

    A burst is re-created on every arming; ``event_count`` carries over so
    the burst that finally fires knows how many notifications it absorbed.
    """

    trigger: FileChangeEvent
    armed_at: float
    fire_at: float
    event_count: int = 1
    task: asyncio.Task | None = field(default=None, repr=False, compare=False)

    @property
    def delay(self) -> float:
        return self.fire_at - self.armed_at

    def cancel(self) -> None:
        if self.task is not None and not self.task.done():
            self.task.cancel()


class CommandResult(BaseModel):
    """Outcome of a single command execution."""

    command: str = Field(..., description="Command string as handed to the shell")
    exit_code: int | None = Field(None, description="Exit status, None when the process could not be spawned")
    error: str | None = Field(None, description="Spawn failure message")
    started_at: float = Field(..., description="Monotonic start time")
    finished_at: float = Field(..., description="Monotonic completion time")

    @computed_field
    @property
    def succeeded(self) -> bool:
        """True when the command ran and exited with status 0."""
        return self.error is None and self.exit_code == 0

    @computed_field
    @property
    def duration(self) -> float:
        """Wall time spent running the command, in seconds."""
        return max(0.0, self.finished_at - self.started_at)

    model_config = ConfigDict(frozen=True)
