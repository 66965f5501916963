"""
Main watch loop.

Waits on three independent inputs at once (the next change event, the next
watch error and the shutdown signal) and hands change events to the
execution scheduler.
"""

import asyncio
import logging

from rich.console import Console
from rich.text import Text

from watchrun.core.interfaces import INotificationSource
from watchrun.monitoring.scheduler import ExecutionScheduler
from watchrun.monitoring.shutdown import ShutdownSignal

logger = logging.getLogger(__name__)


class WatchLoop:
    """
    Coordinates the notification source, the scheduler and shutdown.

    The baseline execution runs before the first event is taken off the
    queue; from then on every change event goes to ``scheduler.arm`` in
    arrival order until shutdown is signalled.
    """

    def __init__(
        self,
        scheduler: ExecutionScheduler,
        source: INotificationSource,
        shutdown: ShutdownSignal,
        console: Console | None = None,
    ):
        self.scheduler = scheduler
        self.source = source
        self.shutdown = shutdown
        self.console = console or Console(highlight=False, soft_wrap=True)
        self._errors_seen = 0

    async def run(self) -> None:
        """Run the baseline execution, then process inputs until shutdown."""
        await self.scheduler.run_baseline()

        next_event = asyncio.create_task(self.source.events.get(), name="next-event")
        next_error = asyncio.create_task(self.source.errors.get(), name="next-error")
        stop = asyncio.create_task(self.shutdown.wait(), name="shutdown")

        try:
            while True:
                done, _ = await asyncio.wait({next_event, next_error, stop}, return_when=asyncio.FIRST_COMPLETED)

                if stop in done:
                    self.console.print(Text("\nStopping file watcher..."))
                    break

                if next_event in done:
                    event = next_event.result()
                    await self.scheduler.arm(event)
                    next_event = asyncio.create_task(self.source.events.get(), name="next-event")

                if next_error in done:
                    error = next_error.result()
                    self._errors_seen += 1
                    self.console.print(Text(f"Error: {error}", style="red"))
                    logger.warning("Watch error: %r", error)
                    next_error = asyncio.create_task(self.source.errors.get(), name="next-error")
        finally:
            for task in (next_event, next_error, stop):
                task.cancel()
            await asyncio.gather(next_event, next_error, stop, return_exceptions=True)
            await self.scheduler.shutdown()

    @property
    def errors_seen(self) -> int:
        return self._errors_seen
