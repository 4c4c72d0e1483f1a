"""
Shared fixtures: virtual clock, manual scheduler and a throwaway SQLite store.
"""

from datetime import UTC, datetime, timedelta

import pytest

from config import reset_config
from tracking.interfaces.clock import ClockInterface, SchedulerInterface
from tracking.services.conflict_service import ConflictEvaluator
from tracking.services.persistence_service import SQLiteSessionStore
from tracking.session_manager import SessionTimerManager

T0 = datetime(2026, 3, 14, 8, 0, 0, tzinfo=UTC)


class FakeClock(ClockInterface):
    def __init__(self, start: datetime = T0):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> datetime:
        self.current = self.current + timedelta(seconds=seconds)
        return self.current

    def set(self, value: datetime) -> None:
        self.current = value


class ManualScheduler(SchedulerInterface):
    """Collects callbacks; tests fire them explicitly."""

    def __init__(self):
        self.jobs: dict[int, tuple[float, object]] = {}
        self.cancelled: list[int] = []
        self._next = 1

    def schedule_repeating(self, interval, callback):
        handle = self._next
        self._next += 1
        self.jobs[handle] = (interval, callback)
        return handle

    def cancel(self, handle) -> None:
        if self.jobs.pop(handle, None) is not None:
            self.cancelled.append(handle)

    def fire(self, times: int = 1, interval: float | None = None) -> None:
        for _ in range(times):
            for job_interval, callback in list(self.jobs.values()):
                if interval is None or job_interval == interval:
                    callback()


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path, monkeypatch):
    """Every test gets its own OUTPUT_DIR and a fresh config."""
    monkeypatch.setenv("OUTPUT_DIR", str(tmp_path / "output"))
    monkeypatch.setenv("TICK_INTERVAL_SECONDS", "1")
    monkeypatch.setenv("AUTO_FLUSH_INTERVAL_SECONDS", "0")
    reset_config()
    yield
    reset_config()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def store(tmp_path):
    return SQLiteSessionStore(tmp_path / "tracker.db")


@pytest.fixture
def manager(store, clock, scheduler):
    mgr = SessionTimerManager(store, clock, scheduler=scheduler, tick_interval=1, auto_flush_interval=0)
    yield mgr
    mgr.shutdown()


@pytest.fixture
def evaluator(store, clock):
    return ConflictEvaluator(store, clock)
