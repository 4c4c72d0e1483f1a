"""
Clock Service - System Clock and Threaded Ticker.

Implements ClockInterface with the real wall clock and SchedulerInterface
with one daemon thread per repeating callback.
"""

import itertools
import threading
from collections.abc import Callable
from datetime import UTC, datetime

from logging_config import get_logger
from tracking.interfaces.clock import ClockInterface, SchedulerInterface

logger = get_logger(__name__)


class SystemClock(ClockInterface):
    """Timezone-aware UTC wall clock."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class ThreadScheduler(SchedulerInterface):
    """
    Runs repeating callbacks on daemon threads.

    Each callback gets its own stop event; waiting on the event doubles as
    the interval sleep so cancel() takes effect immediately.
    """

    def __init__(self):
        self._ids = itertools.count(1)
        self._jobs: dict[int, tuple[threading.Thread, threading.Event]] = {}
        self._lock = threading.Lock()

    def schedule_repeating(self, interval: float, callback: Callable[[], None]) -> int:
        handle = next(self._ids)
        stop_event = threading.Event()
        thread = threading.Thread(
            target=self._run,
            args=(interval, callback, stop_event),
            name=f"SessionTicker-{handle}",
            daemon=True,
        )
        with self._lock:
            self._jobs[handle] = (thread, stop_event)
        thread.start()
        logger.debug(f"Ticker {handle} started (interval={interval}s)")
        return handle

    def cancel(self, handle) -> None:
        with self._lock:
            job = self._jobs.pop(handle, None)
        if job is None:
            return
        thread, stop_event = job
        stop_event.set()
        if thread is not threading.current_thread():
            thread.join(timeout=2.0)
        logger.debug(f"Ticker {handle} stopped")

    def shutdown(self) -> None:
        """Cancels every running callback."""
        with self._lock:
            handles = list(self._jobs)
        for handle in handles:
            self.cancel(handle)

    @staticmethod
    def _run(interval: float, callback: Callable[[], None], stop_event: threading.Event):
        while not stop_event.wait(interval):
            try:
                callback()
            except Exception as e:
                logger.error(f"Error in ticker callback: {e}", exc_info=True)
