"""
Clock Interface - Wall Clock and Periodic Callbacks.

Session timing never reads the system time or sleeps directly; it asks
these interfaces so tests can drive virtual time.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime


class ClockInterface(ABC):
    """Source of the current wall-clock instant."""

    @abstractmethod
    def now(self) -> datetime:
        """Returns the current timezone-aware instant."""
        pass


class SchedulerInterface(ABC):
    """Runs a callback repeatedly until cancelled."""

    @abstractmethod
    def schedule_repeating(self, interval: float, callback: Callable[[], None]):
        """
        Calls ``callback`` every ``interval`` seconds.

        Returns:
            A handle accepted by cancel().
        """
        pass

    @abstractmethod
    def cancel(self, handle) -> None:
        """Stops a callback registered with schedule_repeating()."""
        pass
