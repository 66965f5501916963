"""Process shutdown signal as an awaitable flag."""

import asyncio
import logging
import signal

logger = logging.getLogger(__name__)

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownSignal:
    """
    Turns SIGINT/SIGTERM into an ``asyncio.Event``.

    The watch loop awaits :meth:`wait` alongside its other inputs, so a
    signal is observed as soon as it is delivered.
    """

    def __init__(self, signals: tuple[signal.Signals, ...] = DEFAULT_SIGNALS):
        self.signals = signals
        self._event = asyncio.Event()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._installed: list[signal.Signals] = []
        self._previous_handlers: dict[signal.Signals, object] = {}
        self.received: signal.Signals | None = None

    def install(self, loop: asyncio.AbstractEventLoop) -> None:
        """Register the signal handlers on the given loop."""
        self._loop = loop
        for sig in self.signals:
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
            except (NotImplementedError, RuntimeError):
                # loops without add_signal_handler support (e.g. Windows proactor)
                self._previous_handlers[sig] = signal.signal(sig, self._on_raw_signal)
            self._installed.append(sig)
        logger.debug("Installed shutdown handlers for %s", ", ".join(s.name for s in self._installed))

    def uninstall(self) -> None:
        """Restore the default handling of the signals."""
        for sig in self._installed:
            if sig in self._previous_handlers:
                signal.signal(sig, self._previous_handlers.pop(sig))
            elif self._loop is not None and not self._loop.is_closed():
                self._loop.remove_signal_handler(sig)
        self._installed.clear()

    def _on_signal(self, sig: signal.Signals) -> None:
        logger.info("Received %s, shutting down", sig.name)
        self.received = sig
        self._event.set()

    def _on_raw_signal(self, signum, frame) -> None:
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._on_signal, signal.Signals(signum))

    def trigger(self) -> None:
        """Request shutdown programmatically."""
        self._event.set()

    @property
    def is_set(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()
