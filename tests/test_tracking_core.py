"""
Tests for core.tracking_core: the conflict guard around session actions.
"""

from datetime import datetime, timedelta

import pytest

from conftest import T0
from core import tracking_core
from tracking.errors import (
    ActiveConflict,
    InvalidTimeRange,
    NoActiveSession,
    OverrideRequired,
)
from tracking.interfaces.conflict import ConflictKind
from tracking.interfaces.session import ActivityKind

BABY = "baby-1"


@pytest.fixture
def ctx(store, clock, scheduler):
    context = tracking_core.build_tracking(store=store, clock=clock, scheduler=scheduler)
    yield context
    context.manager.shutdown()


def test_build_tracking_wires_shared_store(ctx, store, clock):
    assert ctx.store is store
    assert ctx.clock is clock
    assert ctx.manager.tick_step == 1


def test_build_tracking_without_ticker(store, clock):
    context = tracking_core.build_tracking(store=store, clock=clock, with_ticker=False)
    context.manager.start(BABY, "sleep")
    assert context.manager._tick_handle is None


def test_start_session_without_conflicts(ctx):
    session = tracking_core.start_session(ctx, BABY, "nursing", seed={"side": "left"})
    assert session.status.value == "left"


def test_active_conflict_cannot_be_overridden(ctx, clock):
    tracking_core.start_session(ctx, BABY, "nursing")
    clock.advance(60)

    with pytest.raises(ActiveConflict) as exc:
        tracking_core.start_session(ctx, BABY, "sleep", allow_override=True)

    assert exc.value.conflicts[0].kind is ConflictKind.ACTIVE
    assert ctx.store.get_active_session(BABY, ActivityKind.SLEEP) is None


def test_logical_conflict_requires_override(ctx, clock):
    tracking_core.start_session(ctx, BABY, "sleep")
    clock.advance(600)
    start = clock.now() - timedelta(minutes=5)

    with pytest.raises(OverrideRequired) as exc:
        tracking_core.log_completed_entry(ctx, BABY, "activity", start, clock.now())
    assert all(c.overridable for c in exc.value.conflicts)
    assert tracking_core.fetch_records(ctx, BABY) == []

    record = tracking_core.log_completed_entry(
        ctx, BABY, "activity", start, clock.now(), allow_override=True
    )
    assert tracking_core.fetch_records(ctx, BABY) == [record]


def test_log_completed_entry_splits_fields(ctx, clock):
    clock.advance(3600)
    record = tracking_core.log_completed_entry(
        ctx,
        BABY,
        "feeding",
        T0,
        T0 + timedelta(minutes=15),
        fields={"notes": "bottle", "amount": 90, "unit": "ml"},
    )
    assert record.activity_type == "feeding"
    assert record.session_kind is None
    assert record.notes == "bottle"
    assert record.extra == {"amount": 90, "unit": "ml"}
    assert record.duration_seconds == 900


def test_log_completed_entry_rejects_inverted_range(ctx, clock):
    clock.advance(3600)
    with pytest.raises(InvalidTimeRange):
        tracking_core.log_completed_entry(ctx, BABY, "sleep", T0 + timedelta(minutes=10), T0)


def test_log_completed_entry_rejects_naive_timestamps(ctx, clock):
    clock.advance(3600)
    with pytest.raises(InvalidTimeRange, match="timezone-aware"):
        tracking_core.log_completed_entry(ctx, BABY, "diaper", datetime(2026, 3, 14, 8, 30))
    with pytest.raises(InvalidTimeRange, match="timezone-aware"):
        tracking_core.log_completed_entry(
            ctx, BABY, "sleep", T0, datetime(2026, 3, 14, 8, 45)
        )
    assert ctx.store.list_records(BABY) == []


def test_pumping_can_start_alongside_anything(ctx, clock):
    tracking_core.start_session(ctx, BABY, "sleep")
    clock.advance(30)
    session = tracking_core.start_session(ctx, BABY, "pumping")
    assert session.kind.value == "pumping"


def test_get_activity_conflicts_never_raises(ctx, clock):
    tracking_core.start_session(ctx, BABY, "sleep")
    clock.advance(60)
    result = tracking_core.get_activity_conflicts(ctx, BABY, "feeding")
    assert result.has_active_conflict


def test_full_lifecycle_through_core(ctx, clock):
    tracking_core.start_session(ctx, BABY, "nursing", seed={"side": "right"})
    clock.advance(120)
    tracking_core.transition_session(ctx, BABY, "nursing", "left")
    clock.advance(60)
    tracking_core.rebalance_sides(ctx, BABY, 90)
    tracking_core.adjust_start_time(ctx, BABY, "nursing", T0 - timedelta(minutes=3))
    record = tracking_core.finalize_session(ctx, BABY, "nursing")

    assert sum(record.durations.values()) == 360
    assert record.durations == {"left_seconds": 180, "right_seconds": 180, "paused_seconds": 0}
    # Both sides used, so there is no side to suggest next.
    assert tracking_core.last_nursing_side(ctx, BABY) is None
    assert ctx.store.list_open_sessions(BABY) == []


def test_cancel_session_through_core(ctx, clock):
    tracking_core.start_session(ctx, BABY, "sleep")
    tracking_core.cancel_session(ctx, BABY, "sleep")
    assert ctx.store.list_open_sessions(BABY) == []
    with pytest.raises(NoActiveSession):
        tracking_core.resume_session(ctx, BABY, "sleep")


def test_session_summary_shows_fed_time_for_nursing(ctx, clock):
    tracking_core.start_session(ctx, BABY, "nursing", seed={"side": "right"})
    clock.advance(90)
    tracking_core.transition_session(ctx, BABY, "nursing", "paused")
    clock.advance(30)
    tracking_core.transition_session(ctx, BABY, "nursing", "left")
    clock.advance(15)

    summary = tracking_core.session_summary(
        ctx, tracking_core.resume_session(ctx, BABY, "nursing")
    )

    assert summary["durations"]["paused_seconds"] == 30
    assert summary["display_seconds"] == 105
    assert summary["display"] == "01:45"


def test_session_summary_for_sleep_and_pumping(ctx, clock):
    tracking_core.start_session(ctx, BABY, "sleep")
    clock.advance(3600)
    tracking_core.start_session(ctx, BABY, "pumping")
    clock.advance(125)

    sleep = tracking_core.session_summary(ctx, tracking_core.resume_session(ctx, BABY, "sleep"))
    pumping = tracking_core.session_summary(
        ctx, tracking_core.resume_session(ctx, BABY, "pumping")
    )

    assert sleep["display"] == "1:02:05"
    assert pumping["display_seconds"] == 125
    assert pumping["display"] == "02:05"
