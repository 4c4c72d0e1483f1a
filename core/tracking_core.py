"""
Tracking Core - Session Actions Guarded by Conflict Checks.

Joins the conflict evaluator and the session timer manager and applies the
override protocol:

- no conflicts: the action proceeds
- logical conflicts only: the action proceeds when allow_override is set,
  otherwise OverrideRequired is raised with the conflicts
- any active conflict: ActiveConflict is raised, override or not

Callers pass a TrackingContext first, the way db_core functions take a
connection.
"""

from dataclasses import dataclass
from datetime import datetime

from config import get_config
from core.duration_core import elapsed_seconds, format_duration, is_timezone_aware
from logging_config import get_logger
from tracking.errors import ActiveConflict, InvalidTimeRange, OverrideRequired
from tracking.interfaces.clock import ClockInterface
from tracking.interfaces.conflict import (
    SESSION_ACTIVITY_TYPES,
    ActivityType,
    ConflictCheckResult,
)
from tracking.interfaces.persistence import SessionStoreInterface
from tracking.interfaces.session import ActiveSession, ActivityKind, ActivityRecord, NursingTimer
from tracking.services.clock_service import SystemClock, ThreadScheduler
from tracking.services.conflict_service import ConflictEvaluator
from tracking.services.persistence_service import SQLiteSessionStore
from tracking.session_manager import SessionTimerManager

logger = get_logger(__name__)


@dataclass
class TrackingContext:
    store: SessionStoreInterface
    clock: ClockInterface
    manager: SessionTimerManager
    evaluator: ConflictEvaluator


def build_tracking(
    store: SessionStoreInterface | None = None,
    clock: ClockInterface | None = None,
    scheduler=None,
    with_ticker: bool = True,
) -> TrackingContext:
    """Wires store, clock, manager and evaluator; defaults come from config."""
    cfg = get_config()
    store = store or SQLiteSessionStore()
    clock = clock or SystemClock()
    if scheduler is None and with_ticker:
        scheduler = ThreadScheduler()
    manager = SessionTimerManager(
        store,
        clock,
        scheduler=scheduler,
        tick_interval=cfg["TICK_INTERVAL_SECONDS"],
        auto_flush_interval=cfg["AUTO_FLUSH_INTERVAL_SECONDS"],
    )
    return TrackingContext(
        store=store,
        clock=clock,
        manager=manager,
        evaluator=ConflictEvaluator(store, clock),
    )


# --- Conflict Guard ---


def get_activity_conflicts(
    ctx: TrackingContext,
    baby_id: str,
    activity_type: ActivityType | str,
    start_time: datetime | None = None,
    end_time: datetime | None = None,
    exclude_id: str | None = None,
    baby_name: str | None = None,
) -> ConflictCheckResult:
    """Pre-flight conflict check; never raises for conflicts."""
    return ctx.evaluator.evaluate(
        baby_id, ActivityType(activity_type), start_time, end_time, exclude_id, baby_name
    )


def check_and_raise_conflicts(
    ctx: TrackingContext,
    baby_id: str,
    activity_type: ActivityType | str,
    start_time: datetime | None = None,
    end_time: datetime | None = None,
    allow_override: bool = False,
    baby_name: str | None = None,
    exclude_id: str | None = None,
) -> ConflictCheckResult:
    """
    Evaluates conflicts and raises unless the action may proceed.

    Raises:
        ActiveConflict: A blocking conflict exists.
        OverrideRequired: Only advisory conflicts exist and allow_override is False.
    """
    activity_type = ActivityType(activity_type)
    result = get_activity_conflicts(
        ctx, baby_id, activity_type, start_time, end_time, exclude_id, baby_name
    )
    if not result.has_conflicts:
        return result

    if result.has_active_conflict:
        logger.warning(f"Blocked {activity_type.value} for baby {baby_id}: active conflict")
        raise ActiveConflict(result.conflicts)
    if not allow_override:
        logger.info(f"{activity_type.value} for baby {baby_id} needs override confirmation")
        raise OverrideRequired(result.conflicts)

    logger.info(f"Overriding logical conflicts for {activity_type.value} (baby {baby_id})")
    return result


# --- Session Actions ---


def start_session(
    ctx: TrackingContext,
    baby_id: str,
    kind: ActivityKind | str,
    start_time: datetime | None = None,
    seed: dict | None = None,
    allow_override: bool = False,
    baby_name: str | None = None,
) -> ActiveSession:
    """Starts a timer after the conflict guard let it through."""
    kind = ActivityKind(kind)
    check_and_raise_conflicts(
        ctx,
        baby_id,
        SESSION_ACTIVITY_TYPES[kind],
        start_time or ctx.clock.now(),
        None,
        allow_override=allow_override,
        baby_name=baby_name,
    )
    return ctx.manager.start(baby_id, kind, start_time, seed)


def resume_session(ctx: TrackingContext, baby_id: str, kind: ActivityKind | str) -> ActiveSession:
    return ctx.manager.resume(baby_id, ActivityKind(kind))


def session_summary(ctx: TrackingContext, session: ActiveSession) -> dict:
    """
    Session dict plus the clock face of the timer screen.

    Nursing shows fed time without pauses and sleep the wall time since
    start; pumping shows its counter.
    """
    timer = session.timer
    if isinstance(timer, NursingTimer):
        shown = timer.fed_seconds
    elif session.kind is ActivityKind.SLEEP:
        shown = elapsed_seconds(session.start_time, ctx.clock.now())
    else:
        shown = timer.total_seconds
    data = session.to_dict()
    data["display_seconds"] = shown
    data["display"] = format_duration(shown)
    return data


def transition_session(
    ctx: TrackingContext, baby_id: str, kind: ActivityKind | str, new_status: str
) -> ActiveSession:
    return ctx.manager.transition(baby_id, ActivityKind(kind), new_status)


def adjust_start_time(
    ctx: TrackingContext, baby_id: str, kind: ActivityKind | str, new_start_time: datetime
) -> ActiveSession:
    return ctx.manager.adjust_start_time(baby_id, ActivityKind(kind), new_start_time)


def press_side(ctx: TrackingContext, baby_id: str, side: str) -> ActiveSession:
    return ctx.manager.press_side(baby_id, side)


def rebalance_sides(ctx: TrackingContext, baby_id: str, new_left_seconds: int) -> ActiveSession:
    return ctx.manager.rebalance_sides(baby_id, new_left_seconds)


def finalize_session(
    ctx: TrackingContext,
    baby_id: str,
    kind: ActivityKind | str,
    end_time: datetime | None = None,
    final_fields: dict | None = None,
) -> ActivityRecord:
    return ctx.manager.finalize(baby_id, ActivityKind(kind), end_time, final_fields)


def cancel_session(ctx: TrackingContext, baby_id: str, kind: ActivityKind | str) -> None:
    ctx.manager.cancel(baby_id, ActivityKind(kind))


# --- Atomic Entries ---


def log_completed_entry(
    ctx: TrackingContext,
    baby_id: str,
    activity_type: ActivityType | str,
    start_time: datetime,
    end_time: datetime | None = None,
    fields: dict | None = None,
    allow_override: bool = False,
    baby_name: str | None = None,
) -> ActivityRecord:
    """
    Records an already-complete entry (bottle feeding, finished sleep,
    diaper, ...) after the conflict guard.

    Raises:
        InvalidTimeRange: A timestamp is naive or end_time is not after start_time.
    """
    activity_type = ActivityType(activity_type)
    if not all(is_timezone_aware(t) for t in (start_time, end_time) if t is not None):
        raise InvalidTimeRange("Entry timestamps must be timezone-aware")
    if end_time is not None and end_time <= start_time:
        raise InvalidTimeRange("End time must be after start time")

    check_and_raise_conflicts(
        ctx,
        baby_id,
        activity_type,
        start_time,
        end_time,
        allow_override=allow_override,
        baby_name=baby_name,
    )
    fields = dict(fields or {})
    record = ActivityRecord(
        baby_id=baby_id,
        activity_type=activity_type.value,
        start_time=start_time,
        end_time=end_time,
        notes=fields.pop("notes", None),
        side=fields.pop("side", None),
        extra=fields,
    )
    ctx.store.create_final_record(record)
    logger.info(f"Logged {activity_type.value} entry {record.id} for baby {baby_id}")
    return record


def last_nursing_side(ctx: TrackingContext, baby_id: str) -> str | None:
    return ctx.manager.last_nursing_side(baby_id)


def fetch_records(ctx: TrackingContext, baby_id: str, limit: int = 50) -> list[ActivityRecord]:
    """Most recent records of the baby, newest first."""
    return ctx.store.list_records(baby_id, limit)
