"""
Duration Core - Pure Session Duration Arithmetic.

All durations are integer seconds. Fractions are truncated, never rounded,
so repeated checkpoint/resume cycles cannot drift upward.
"""

from datetime import datetime, timedelta


def elapsed_seconds(since: datetime, now: datetime) -> int:
    """Whole seconds from ``since`` to ``now``; never negative."""
    seconds = int((now - since).total_seconds())
    return max(0, seconds)


def advance_checkpoint(checkpoint: datetime, now: datetime) -> tuple[int, datetime]:
    """
    Computes the whole seconds to flush and the new checkpoint instant.

    The checkpoint moves forward by exactly the flushed seconds, so the
    truncated remainder is carried into the next flush instead of being lost.

    Returns:
        (seconds_to_add, new_checkpoint)
    """
    seconds = elapsed_seconds(checkpoint, now)
    return seconds, checkpoint + timedelta(seconds=seconds)


def rebalance_buckets(
    old_buckets: dict[str, int], old_total: int, new_total: int
) -> dict[str, int]:
    """
    Scales every bucket by ``new_total / old_total``.

    Used when the start time of a session is corrected: the time already
    logged is redistributed across the new span in the same proportions.
    With an unknown or non-positive ``old_total`` there is nothing to scale
    and the buckets are returned unchanged.

    >>> rebalance_buckets({"left_seconds": 240, "right_seconds": 360}, 600, 1200)
    {'left_seconds': 480, 'right_seconds': 720}
    """
    if new_total <= 0:
        raise ValueError("new_total must be positive")
    if not old_total or old_total <= 0:
        return dict(old_buckets)
    return {name: (value * new_total) // old_total for name, value in old_buckets.items()}


def rebalance_sides(left: int, right: int, new_left: int) -> tuple[int, int]:
    """
    Reassigns nursing time between sides while keeping the total fixed.

    ``new_left`` is clamped to ``[0, left + right]``.
    """
    total = left + right
    clamped_left = max(0, min(total, int(new_left)))
    return clamped_left, total - clamped_left


def derive_nursing_side(left_seconds: int, right_seconds: int) -> str:
    """Side label stored on a finished nursing record."""
    if left_seconds > 0 and right_seconds == 0:
        return "left"
    if right_seconds > 0 and left_seconds == 0:
        return "right"
    return "both"


def format_duration(seconds: int) -> str:
    """Formats seconds as MM:SS, or H:MM:SS from one hour on."""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    mins, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{mins:02d}:{secs:02d}"
    return f"{mins:02d}:{secs:02d}"


def is_timezone_aware(value: datetime) -> bool:
    """True when ``value`` carries a UTC offset and can be compared with the clock."""
    return value.tzinfo is not None and value.utcoffset() is not None
