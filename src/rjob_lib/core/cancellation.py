# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Cooperative cancellation of a running orchestration.

A `Cancellation` is shared between the orchestrating thread and whoever may
request the cancellation (a signal handler, another thread, a test). The
orchestrator observes it while waiting between poll cycles and after every
blocking remote call.
"""

import signal
import threading
from types import FrameType

from .error import JobCancelled
from .logger import get_logger

logger = get_logger(__name__)


class Cancellation:
    """
    Cancellation signal observed by the orchestrator.

    Attributes:
        reason (str | None): Human-readable reason of the cancellation, if cancelled.
    """

    def __init__(self):
        self._event = threading.Event()
        self.reason: str | None = None

    def cancel(self, reason: str = "cancellation requested") -> None:
        """
        Request the cancellation. Safe to call repeatedly and from signal handlers.

        Args:
            reason (str): Human-readable reason of the cancellation.
        """
        if not self._event.is_set():
            self.reason = reason
        self._event.set()

    def isCancelled(self) -> bool:
        """Return True if the cancellation has been requested."""
        return self._event.is_set()

    def raiseIfCancelled(self) -> None:
        """
        Raise `JobCancelled` if the cancellation has been requested.

        Raises:
            JobCancelled: If cancelled.
        """
        if self._event.is_set():
            raise JobCancelled(self.reason or "cancellation requested")

    def wait(self, seconds: float) -> None:
        """
        Block for `seconds` unless the cancellation is requested in the meantime.

        Raises:
            JobCancelled: If cancelled before or during the wait.
        """
        self.raiseIfCancelled()
        if self._event.wait(timeout=seconds):
            self.raiseIfCancelled()

    def installSignalHandlers(
        self, signals: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)
    ) -> None:
        """
        Route the given signals into this cancellation.

        Must be called from the main thread.
        """
        for signum in signals:
            signal.signal(signum, self._handleSignal)

    def _handleSignal(self, signum: int, _frame: FrameType | None) -> None:
        """
        Signal handler requesting the cancellation.
        """
        name = signal.Signals(signum).name
        logger.info(f"Received {name}, cancelling the job.")
        self.cancel(f"received {name}")
