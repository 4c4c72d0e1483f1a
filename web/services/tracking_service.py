"""
Tracking Service - Web Layer Service for Session Tracking.

Thin wrapper over core.tracking_core that owns the process-wide
TrackingContext.
"""

import threading

from core import tracking_core

_context: tracking_core.TrackingContext | None = None
_context_lock = threading.Lock()


# --- Context ---


def get_context() -> tracking_core.TrackingContext:
    """Returns the shared context, building it from config on first use."""
    global _context
    with _context_lock:
        if _context is None:
            _context = tracking_core.build_tracking()
        return _context


def set_context(ctx: tracking_core.TrackingContext | None) -> None:
    """Replaces the shared context (app factory and tests)."""
    global _context
    with _context_lock:
        _context = ctx


# --- Sessions ---


def list_sessions(baby_id: str) -> list:
    """Open sessions of the baby as displayed (resumed) sessions."""
    ctx = get_context()
    return [
        tracking_core.resume_session(ctx, baby_id, s.kind)
        for s in ctx.store.list_open_sessions(baby_id)
    ]


def resume_session(baby_id: str, kind: str):
    return tracking_core.resume_session(get_context(), baby_id, kind)


def start_session(baby_id: str, kind: str, start_time=None, seed=None, allow_override=False, baby_name=None):
    return tracking_core.start_session(
        get_context(),
        baby_id,
        kind,
        start_time=start_time,
        seed=seed,
        allow_override=allow_override,
        baby_name=baby_name,
    )


def session_summary(session) -> dict:
    return tracking_core.session_summary(get_context(), session)


def transition_session(baby_id: str, kind: str, new_status: str):
    return tracking_core.transition_session(get_context(), baby_id, kind, new_status)


def adjust_start_time(baby_id: str, kind: str, new_start_time):
    return tracking_core.adjust_start_time(get_context(), baby_id, kind, new_start_time)


def press_side(baby_id: str, side: str):
    return tracking_core.press_side(get_context(), baby_id, side)


def rebalance_sides(baby_id: str, new_left_seconds: int):
    return tracking_core.rebalance_sides(get_context(), baby_id, new_left_seconds)


def finalize_session(baby_id: str, kind: str, end_time=None, final_fields=None):
    return tracking_core.finalize_session(get_context(), baby_id, kind, end_time, final_fields)


def cancel_session(baby_id: str, kind: str) -> None:
    tracking_core.cancel_session(get_context(), baby_id, kind)


def last_nursing_side(baby_id: str):
    return tracking_core.last_nursing_side(get_context(), baby_id)


# --- Entries and Conflicts ---


def log_completed_entry(baby_id: str, activity_type: str, start_time, end_time=None, fields=None, allow_override=False, baby_name=None):
    return tracking_core.log_completed_entry(
        get_context(),
        baby_id,
        activity_type,
        start_time,
        end_time,
        fields=fields,
        allow_override=allow_override,
        baby_name=baby_name,
    )


def fetch_records(baby_id: str, limit: int = 50) -> list:
    return tracking_core.fetch_records(get_context(), baby_id, limit)


def get_activity_conflicts(baby_id: str, activity_type: str, start_time=None, end_time=None, exclude_id=None, baby_name=None):
    return tracking_core.get_activity_conflicts(
        get_context(), baby_id, activity_type, start_time, end_time, exclude_id, baby_name
    )
