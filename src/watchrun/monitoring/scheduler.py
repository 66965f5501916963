"""
Event coalescing and execution scheduling.

Turns a bursty stream of file change notifications into a rate-limited
stream of command executions:

* every relevant change (re)arms a single debounce timer, so a burst of
  changes produces one timer fire, ``debounce_seconds`` after the last event;
* when the timer fires, the command runs only if at least
  ``min_interval_seconds`` have passed since the previous execution
  started; otherwise the burst is dropped without retry;
* a file whose removal triggered an execution is re-subscribed once it
  reappears.

Arming and the fire-time decision share one lock, and the fire path keeps
it for the whole execution, so commands never overlap and an event can
never cancel a timer that has already started deciding.
"""

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.text import Text

from watchrun.config import WatchConfig
from watchrun.core.interfaces import ICommandRunner, INotificationSource
from watchrun.models import ChangeKind, CommandResult, FileChangeEvent, PendingBurst

logger = logging.getLogger(__name__)


class ExecutionScheduler:
    """
    Single owner of the debounce timer and the execution gate.

    The only ways to change scheduling state are :meth:`arm`, the timer's own
    fire callback, :meth:`run_baseline` and :meth:`shutdown`; all of them go
    through the same ``asyncio.Lock``.
    """

    def __init__(
        self,
        config: WatchConfig,
        command: str,
        watch_set: Sequence[Path],
        runner: ICommandRunner,
        source: INotificationSource,
        console: Console | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the scheduler.

        Args:
            config: Timing policy
            command: Command string handed to the runner
            watch_set: Every watched file, passed to the runner for context
            runner: Command runner
            source: Notification source used to re-subscribe recreated files
            console: Console for the per-trigger status line
            clock: Monotonic clock used for the rate-limit gate
        """
        self.config = config
        self.command = command
        self.watch_set = list(watch_set)
        self.runner = runner
        self.source = source
        self.console = console or Console(highlight=False, soft_wrap=True)
        self._clock = clock

        self._lock = asyncio.Lock()
        self._pending: PendingBurst | None = None
        self._last_execution: float | None = None
        self._resubscribe_tasks: set[asyncio.Task] = set()
        self._closed = False

        self._stats = {
            "events_received": 0,
            "events_filtered": 0,
            "timers_armed": 0,
            "timers_superseded": 0,
            "executions": 0,
            "failed_executions": 0,
            "rate_limited": 0,
            "resubscriptions": 0,
            "resubscribe_failures": 0,
        }

    async def run_baseline(self) -> CommandResult:
        """
        Run the command once, unconditionally, before any change is handled.

        Returns:
            Result of the startup execution
        """
        async with self._lock:
            logger.info("Running startup baseline for %d file(s)", len(self.watch_set))
            return await self._execute()

    async def arm(self, event: FileChangeEvent) -> bool:
        """
        Feed a change event into the debounce timer.

        Permission-only changes are discarded. Any other change cancels the
        pending timer, if there is one, and arms a fresh one.

        Args:
            event: Change notification

        Returns:
            True if the timer was (re)armed
        """
        self._stats["events_received"] += 1

        if event.is_permission_only:
            self._stats["events_filtered"] += 1
            logger.debug("Ignoring permission-only change: %s", event)
            return False

        async with self._lock:
            if self._closed:
                logger.debug("Scheduler closed, ignoring %s", event)
                return False

            carried = 0
            if self._pending is not None:
                self._pending.cancel()
                carried = self._pending.event_count
                self._stats["timers_superseded"] += 1

            now = self._clock()
            burst = PendingBurst(
                trigger=event,
                armed_at=now,
                fire_at=now + self.config.debounce_seconds,
                event_count=carried + 1,
            )
            burst.task = asyncio.create_task(self._on_fire(burst), name=f"debounce:{event.basename}")
            self._pending = burst
            self._stats["timers_armed"] += 1

        logger.debug("Armed debounce timer for %s (%d event(s) in burst)", event, burst.event_count)
        return True

    async def _on_fire(self, burst: PendingBurst) -> None:
        """
        Debounce timer body.

        Args:
            burst: The burst this timer belongs to
        """
        try:
            await asyncio.sleep(self.config.debounce_seconds)
        except asyncio.CancelledError:
            logger.debug("Debounce timer for %s superseded", burst.trigger)
            raise

        async with self._lock:
            if self._pending is not burst or self._closed:
                return
            # Detach so a later arm() cannot cancel this timer mid-decision
            self._pending = None

            elapsed = None if self._last_execution is None else self._clock() - self._last_execution
            if elapsed is not None and elapsed < self.config.min_interval_seconds:
                self._stats["rate_limited"] += 1
                logger.debug(
                    "Dropping burst for %s: %.3fs since last execution (minimum %.3fs)",
                    burst.trigger,
                    elapsed,
                    self.config.min_interval_seconds,
                )
                return

            self.console.print(
                Text(f"[{burst.trigger.basename}] Change detected at {datetime.now().strftime('%H:%M:%S')}")
            )
            logger.info("Burst of %d event(s) settled, last: %s", burst.event_count, burst.trigger)
            try:
                await self._execute(gate_time=self._clock())
            except Exception as e:
                self._stats["failed_executions"] += 1
                logger.error("Error running command for %s: %s", burst.trigger, e)

            if burst.trigger.kind is ChangeKind.REMOVE:
                self._schedule_resubscribe(burst.trigger.path)

    async def _execute(self, gate_time: float | None = None) -> CommandResult:
        """
        Run the command in a worker thread. Caller must hold the lock.

        The gate is set to ``gate_time`` when given (the start of a triggered
        run), otherwise to the completion time. It is set even if the runner
        raises.
        """
        try:
            result = await asyncio.to_thread(self.runner.run, self.command, self.watch_set)
        finally:
            self._last_execution = self._clock() if gate_time is None else gate_time

        self._stats["executions"] += 1
        if not result.succeeded:
            self._stats["failed_executions"] += 1
            logger.info("Command failed (exit code: %s, error: %s)", result.exit_code, result.error)
        return result

    def _schedule_resubscribe(self, path: Path) -> None:
        """Start the delayed re-subscription of a removed file."""
        if self._closed:
            return
        task = asyncio.create_task(self._resubscribe(path), name=f"resubscribe:{path.name}")
        self._resubscribe_tasks.add(task)
        task.add_done_callback(self._resubscribe_tasks.discard)

    async def _resubscribe(self, path: Path) -> None:
        """
        Re-add a removed file to the notification source once it exists again.

        Failures are logged and counted; they never propagate.

        Args:
            path: File whose removal triggered the last execution
        """
        await asyncio.sleep(self.config.effective_resubscribe_delay)

        if not path.exists():
            self._stats["resubscribe_failures"] += 1
            logger.warning("Cannot re-watch %s: file is still missing", path)
            return

        try:
            self.source.add(path)
        except Exception as e:
            self._stats["resubscribe_failures"] += 1
            logger.warning("Failed to re-watch %s: %s", path, e)
            return

        self._stats["resubscriptions"] += 1
        logger.info("Re-watching %s after it was recreated", path)

    async def shutdown(self) -> None:
        """
        Stop accepting work.

        Cancels the pending timer and outstanding re-subscriptions, then waits
        for an execution already in flight to finish.
        """
        if self._closed:
            return
        self._closed = True

        tasks = list(self._resubscribe_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        async with self._lock:
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None

        logger.debug("Scheduler shut down")

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def has_pending_burst(self) -> bool:
        """Check if a debounce timer is currently armed."""
        return self._pending is not None

    @property
    def pending_burst(self) -> PendingBurst | None:
        return self._pending

    @property
    def last_execution(self) -> float | None:
        """Gate timestamp: start of the last triggered run, or end of the baseline."""
        return self._last_execution

    def get_stats(self) -> dict[str, Any]:
        """
        Get scheduler statistics.

        Returns:
            Dictionary with event, timer and execution counters
        """
        return {
            **self._stats,
            "pending_burst": self._pending is not None,
            "last_execution": self._last_execution,
            "configuration": {
                "debounce_seconds": self.config.debounce_seconds,
                "min_interval_seconds": self.config.min_interval_seconds,
            },
        }
