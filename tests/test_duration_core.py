"""Tests for the pure duration helpers in core.duration_core."""

from datetime import UTC, datetime, timedelta

import pytest

from core.duration_core import (
    advance_checkpoint,
    derive_nursing_side,
    elapsed_seconds,
    format_duration,
    rebalance_buckets,
    rebalance_sides,
)

T = datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)


def test_elapsed_truncates_fractions():
    assert elapsed_seconds(T, T + timedelta(seconds=4.999)) == 4


def test_elapsed_never_negative():
    """A clock that went backwards adds nothing."""
    assert elapsed_seconds(T, T - timedelta(seconds=30)) == 0


def test_advance_checkpoint_carries_remainder():
    """Truncated fractions stay pending instead of being lost."""
    seconds, checkpoint = advance_checkpoint(T, T + timedelta(seconds=2.6))
    assert seconds == 2
    assert checkpoint == T + timedelta(seconds=2)

    # The next flush picks up the 0.6s left over plus the new 0.6s.
    seconds, checkpoint = advance_checkpoint(checkpoint, T + timedelta(seconds=3.2))
    assert seconds == 1
    assert checkpoint == T + timedelta(seconds=3)


def test_rebalance_buckets_scales_proportionally():
    """10 min split 4/6 stretched to 20 min becomes 8/12."""
    result = rebalance_buckets(
        {"left_seconds": 240, "right_seconds": 360, "paused_seconds": 0}, 600, 1200
    )
    assert result == {"left_seconds": 480, "right_seconds": 720, "paused_seconds": 0}


def test_rebalance_buckets_shrinks_and_truncates():
    result = rebalance_buckets({"left_seconds": 100, "right_seconds": 200}, 300, 100)
    assert result == {"left_seconds": 33, "right_seconds": 66}


def test_rebalance_buckets_unknown_old_total_is_identity():
    buckets = {"seconds": 0}
    assert rebalance_buckets(buckets, 0, 300) == {"seconds": 0}


def test_rebalance_buckets_rejects_non_positive_new_total():
    with pytest.raises(ValueError):
        rebalance_buckets({"seconds": 10}, 10, 0)


def test_rebalance_sides_keeps_total():
    assert rebalance_sides(300, 100, 150) == (150, 250)


def test_rebalance_sides_clamps():
    assert rebalance_sides(300, 100, 999) == (400, 0)
    assert rebalance_sides(300, 100, -5) == (0, 400)


@pytest.mark.parametrize(
    "left,right,expected",
    [(120, 0, "left"), (0, 90, "right"), (60, 60, "both"), (0, 0, "both")],
)
def test_derive_nursing_side(left, right, expected):
    assert derive_nursing_side(left, right) == expected


def test_format_duration():
    assert format_duration(65) == "01:05"
    assert format_duration(3725) == "1:02:05"
    assert format_duration(-3) == "00:00"
