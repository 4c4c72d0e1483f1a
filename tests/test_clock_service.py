"""
Threading tests for the system clock and the threaded ticker.

Tests verify:
- Callbacks repeat until cancelled and stop promptly afterwards
- A failing callback does not kill its ticker thread
- Ticks running on a real thread never write to the store
"""

import threading
import time
from datetime import UTC

from tracking.services.clock_service import SystemClock, ThreadScheduler
from tracking.session_manager import SessionTimerManager

BABY = "baby-1"


def test_system_clock_is_timezone_aware():
    assert SystemClock().now().tzinfo is UTC


def test_repeating_callback_until_cancelled():
    scheduler = ThreadScheduler()
    calls = []
    fired = threading.Event()

    def callback():
        calls.append(time.monotonic())
        if len(calls) >= 3:
            fired.set()

    handle = scheduler.schedule_repeating(0.01, callback)
    assert fired.wait(timeout=2.0)
    scheduler.cancel(handle)

    count = len(calls)
    time.sleep(0.05)
    assert len(calls) == count


def test_failing_callback_keeps_running():
    scheduler = ThreadScheduler()
    attempts = []
    done = threading.Event()

    def callback():
        attempts.append(1)
        if len(attempts) >= 3:
            done.set()
        raise RuntimeError("boom")

    scheduler.schedule_repeating(0.01, callback)
    try:
        assert done.wait(timeout=2.0)
    finally:
        scheduler.shutdown()


def test_cancel_unknown_handle_is_noop():
    ThreadScheduler().cancel(12345)


def test_threaded_ticks_do_not_touch_store(store, clock):
    scheduler = ThreadScheduler()
    manager = SessionTimerManager(store, clock, scheduler=scheduler, tick_interval=0.01)
    writes = []
    real_create = store.create_active_session
    real_update = store.update_active_session

    def counting_create(session):
        writes.append(("create", session.id))
        return real_create(session)

    def counting_update(session):
        writes.append(("update", session.id))
        return real_update(session)

    store.create_active_session = counting_create
    store.update_active_session = counting_update
    try:
        manager.start(BABY, "pumping")
        deadline = time.monotonic() + 2.0
        while manager.display_seconds(BABY, "pumping")["seconds"] < 5:
            assert time.monotonic() < deadline, "ticker did not advance the display"
            time.sleep(0.01)

        # Only the start checkpoint was written.
        assert [kind for kind, _ in writes] == ["create"]
    finally:
        manager.shutdown()
        scheduler.shutdown()
