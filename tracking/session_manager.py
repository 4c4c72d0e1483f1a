"""
Session Timer Manager.

Owns the start / transition / finalize / cancel lifecycle of resumable
sessions (nursing, pumping, sleep) and keeps an in-memory display clock in
step with the durable state.

Durable state is only written at checkpoints: start, every status
transition, start-time edits, side rebalancing, explicit flushes and
finalize. Ticks only move the in-memory display.
"""

import threading
from dataclasses import dataclass, replace
from datetime import datetime

from config import get_config
from core.duration_core import (
    advance_checkpoint,
    derive_nursing_side,
    elapsed_seconds,
    is_timezone_aware,
    rebalance_buckets,
    rebalance_sides,
)
from logging_config import get_logger
from tracking.errors import (
    AlreadyActive,
    InvalidTimeRange,
    InvalidTransition,
    NoActiveSession,
)
from tracking.interfaces.clock import ClockInterface, SchedulerInterface
from tracking.interfaces.conflict import SESSION_ACTIVITY_TYPES
from tracking.interfaces.persistence import SessionStoreInterface
from tracking.interfaces.session import (
    ActiveSession,
    ActivityKind,
    ActivityRecord,
    NursingStatus,
    NursingTimer,
    SessionTimer,
    new_timer,
    parse_status,
)

logger = get_logger(__name__)


@dataclass
class _LiveSession:
    """In-memory mirror of one session: durable state plus ticked display time."""

    session: ActiveSession
    display: SessionTimer
    display_elapsed: int


def _flush(session: ActiveSession, now: datetime) -> None:
    """Moves time elapsed since the last checkpoint into the bucket of the current status."""
    seconds, checkpoint = advance_checkpoint(session.last_checkpoint_at, now)
    session.timer.add(seconds)
    session.last_checkpoint_at = checkpoint


def _require_aware(value: datetime, name: str) -> datetime:
    if not is_timezone_aware(value):
        raise InvalidTimeRange(f"{name} must be timezone-aware, got {value.isoformat()}")
    return value


def _parse_side(side) -> NursingStatus:
    try:
        side = NursingStatus(side)
    except ValueError as e:
        raise InvalidTransition(f"Unknown side: {side}") from e
    if side is NursingStatus.PAUSED:
        raise InvalidTransition("Side must be left or right")
    return side


class SessionTimerManager:
    """
    Coordinates session storage, the clock and the display ticker.

    The store is the source of truth: every operation reads the durable
    session, changes a copy and only adopts the copy once the write
    succeeded. A failed write therefore leaves the last checkpoint canonical.
    """

    def __init__(
        self,
        store: SessionStoreInterface,
        clock: ClockInterface,
        scheduler: SchedulerInterface | None = None,
        tick_interval: float | None = None,
        auto_flush_interval: float | None = None,
    ):
        """
        Initialize the manager.

        Args:
            store: Durable session storage.
            clock: Wall clock.
            scheduler: Drives tick() (and periodic flushes). Without one the
                caller ticks manually.
            tick_interval: Seconds between display ticks. Uses config if not provided.
            auto_flush_interval: Seconds between durable flushes of all live
                sessions; 0 disables. Uses config if not provided.
        """
        cfg = get_config()
        self._store = store
        self._clock = clock
        self._scheduler = scheduler
        self._tick_interval = (
            tick_interval if tick_interval is not None else cfg["TICK_INTERVAL_SECONDS"]
        )
        self._auto_flush_interval = (
            auto_flush_interval
            if auto_flush_interval is not None
            else cfg["AUTO_FLUSH_INTERVAL_SECONDS"]
        )
        self._live: dict[tuple[str, ActivityKind], _LiveSession] = {}
        self._lock = threading.Lock()
        self._ticker_lock = threading.Lock()
        self._tick_handle = None
        self._flush_handle = None

    @property
    def tick_step(self) -> int:
        return max(1, int(self._tick_interval))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(
        self,
        baby_id: str,
        kind: ActivityKind,
        start_time: datetime | None = None,
        seed: dict | None = None,
    ) -> ActiveSession:
        """
        Creates a new active session.

        Args:
            baby_id: Owning subject.
            kind: Session kind.
            start_time: When the activity began; defaults to now.
            seed: Kind-specific initial values: ``side``/``status`` (nursing:
                left | right | paused, pumping: running | paused), bucket
                values such as ``left_seconds``, ``notes``; every other key
                is carried to the final record.

        Raises:
            AlreadyActive: A session of this kind already exists for the baby.
            InvalidTimeRange: start_time lies in the future or carries no timezone.
            InvalidTransition: The seeded status does not exist for the kind.
        """
        kind = ActivityKind(kind)
        if self._store.get_active_session(baby_id, kind) is not None:
            logger.warning(f"Refusing to start {kind.value} for baby {baby_id}: already active")
            raise AlreadyActive(baby_id, kind)

        now = self._clock.now()
        start_time = _require_aware(start_time, "Start time") if start_time else now
        if start_time > now:
            raise InvalidTimeRange("Start time cannot be in the future")

        seed = dict(seed or {})
        status = seed.pop("side", None) or seed.pop("status", None)
        seed.pop("status", None)
        try:
            timer = new_timer(kind, status)
        except ValueError as e:
            raise InvalidTransition(str(e)) from e
        initial = {k: int(seed.pop(k)) for k in list(timer.buckets()) if k in seed}
        if any(v < 0 for v in initial.values()):
            raise InvalidTimeRange("Durations cannot be negative")
        timer = timer.with_buckets(initial) if initial else timer

        session = ActiveSession(
            baby_id=baby_id,
            start_time=start_time,
            timer=timer,
            last_checkpoint_at=now,
            notes=seed.pop("notes", None),
            extra=seed,
        )
        self._store.create_active_session(session)
        self._track(session, now)
        logger.info(f"Started {kind.value} session {session.id} for baby {baby_id}")
        return session.copy()

    def resume(self, baby_id: str, kind: ActivityKind) -> ActiveSession:
        """
        Rehydrates a session after a reload.

        Time elapsed since the last checkpoint is attributed to the bucket
        that was active at that checkpoint, as if the clock had kept running.
        Nothing is written.

        Raises:
            NoActiveSession: Nothing to resume.
        """
        kind = ActivityKind(kind)
        session = self._load(baby_id, kind)
        now = self._clock.now()
        live = self._track(session, now)
        logger.debug(
            f"Resumed {kind.value} session {session.id}: {live.display.buckets()} "
            f"({live.display_elapsed}s since start)"
        )
        return replace(session.copy(), timer=replace(live.display))

    def transition(self, baby_id: str, kind: ActivityKind, new_status) -> ActiveSession:
        """
        Changes the status (pause, resume, switch side) at a checkpoint.

        Seconds since the previous checkpoint go to the bucket of the OLD
        status before the status changes.

        Raises:
            NoActiveSession: No session to transition.
            InvalidTransition: The status does not exist for the kind.
        """
        kind = ActivityKind(kind)
        try:
            status = parse_status(kind, new_status)
        except ValueError as e:
            raise InvalidTransition(str(e)) from e
        if status is None:
            raise InvalidTransition(f"{kind.value} sessions cannot change status")

        session = self._load(baby_id, kind)
        now = self._clock.now()
        updated = session.copy()
        _flush(updated, now)
        old_status = updated.timer.status
        updated.timer = replace(updated.timer, status=status)
        self._save(updated, now)
        logger.info(
            f"{kind.value} session {session.id}: {old_status.value} -> {status.value}"
        )
        return updated.copy()

    def pause(self, baby_id: str, kind: ActivityKind) -> ActiveSession:
        """Pauses a nursing or pumping session."""
        return self.transition(baby_id, kind, "paused")

    def switch_side(self, baby_id: str, side: NursingStatus | str) -> ActiveSession:
        """Starts or resumes nursing on the given side."""
        side = _parse_side(side)
        return self.transition(baby_id, ActivityKind.NURSING, side)

    def press_side(self, baby_id: str, side: NursingStatus | str) -> ActiveSession:
        """
        Side button of the nursing timer.

        Pressing the side that is running pauses; pressing a side while
        paused resumes on it; pressing the other side switches.
        """
        side = _parse_side(side)
        session = self._load(baby_id, ActivityKind.NURSING)
        target = NursingStatus.PAUSED if session.status is side else side
        return self.transition(baby_id, ActivityKind.NURSING, target)

    def flush(self, baby_id: str, kind: ActivityKind) -> ActiveSession:
        """Writes a checkpoint without changing the status."""
        kind = ActivityKind(kind)
        session = self._load(baby_id, kind)
        now = self._clock.now()
        updated = session.copy()
        _flush(updated, now)
        self._save(updated, now)
        return updated.copy()

    def adjust_start_time(
        self, baby_id: str, kind: ActivityKind, new_start_time: datetime
    ) -> ActiveSession:
        """
        Moves the start of a session and redistributes logged time.

        The accumulated buckets are scaled by new_total / old_total so the
        correction is spread over all buckets instead of one side. A session
        with nothing logged yet gets the whole new span on its current
        bucket.

        Raises:
            InvalidTimeRange: The new start is naive or would leave a
                non-positive duration.
        """
        kind = ActivityKind(kind)
        _require_aware(new_start_time, "Start time")
        session = self._load(baby_id, kind)
        now = self._clock.now()
        if new_start_time >= now:
            raise InvalidTimeRange("Start time must be before now")

        updated = session.copy()
        _flush(updated, now)
        if kind is not ActivityKind.SLEEP:
            old_total = updated.timer.total_seconds
            shift = int((updated.start_time - new_start_time).total_seconds())
            new_total = old_total + shift
            if new_total <= 0:
                raise InvalidTimeRange(
                    "New start time would make the session duration zero or negative"
                )
            if old_total > 0:
                buckets = rebalance_buckets(updated.timer.buckets(), old_total, new_total)
            else:
                buckets = {self._current_bucket(updated.timer): new_total}
            updated.timer = updated.timer.with_buckets(buckets)
        updated.start_time = new_start_time
        self._save(updated, now)
        logger.info(
            f"{kind.value} session {session.id} start moved to {new_start_time.isoformat()}"
        )
        return updated.copy()

    def rebalance_sides(self, baby_id: str, new_left_seconds: int) -> ActiveSession:
        """
        Reassigns nursing time between left and right, keeping the sum fixed.
        """
        session = self._load(baby_id, ActivityKind.NURSING)
        now = self._clock.now()
        updated = session.copy()
        _flush(updated, now)
        left, right = rebalance_sides(
            updated.timer.left_seconds, updated.timer.right_seconds, new_left_seconds
        )
        updated.timer = replace(updated.timer, left_seconds=left, right_seconds=right)
        self._save(updated, now)
        return updated.copy()

    def update_details(
        self,
        baby_id: str,
        kind: ActivityKind,
        notes: str | None = None,
        extra: dict | None = None,
    ) -> ActiveSession:
        """Updates notes and kind-specific fields of a running session (checkpoints too)."""
        kind = ActivityKind(kind)
        session = self._load(baby_id, kind)
        now = self._clock.now()
        updated = session.copy()
        _flush(updated, now)
        if notes is not None:
            updated.notes = notes
        if extra:
            updated.extra.update(extra)
        self._save(updated, now)
        return updated.copy()

    def finalize(
        self,
        baby_id: str,
        kind: ActivityKind,
        end_time: datetime | None = None,
        final_fields: dict | None = None,
    ) -> ActivityRecord:
        """
        Converts the session into a permanent record and removes it.

        Record write and session removal happen in one storage transaction.

        Raises:
            NoActiveSession: Nothing to finalize.
            InvalidTimeRange: end_time is not after the start time.
        """
        kind = ActivityKind(kind)
        if end_time is not None:
            _require_aware(end_time, "End time")
        session = self._load(baby_id, kind)
        now = self._clock.now()
        updated = session.copy()
        _flush(updated, now)
        end_time = end_time or now
        if end_time <= updated.start_time:
            raise InvalidTimeRange("End time must be after start time")

        fields = dict(final_fields or {})
        notes = fields.pop("notes", updated.notes)
        durations = updated.timer.buckets()
        side = None
        if isinstance(updated.timer, NursingTimer):
            side = derive_nursing_side(updated.timer.left_seconds, updated.timer.right_seconds)

        record = ActivityRecord(
            id=session.id,
            baby_id=baby_id,
            activity_type=SESSION_ACTIVITY_TYPES[kind].value,
            session_kind=kind,
            start_time=updated.start_time,
            end_time=end_time,
            durations=durations,
            side=side,
            notes=notes,
            extra={**updated.extra, **fields},
        )
        self._store.finalize_active_session(record)
        self._untrack(baby_id, kind)
        logger.info(
            f"Finalized {kind.value} session {session.id} for baby {baby_id} "
            f"({record.duration_seconds}s, {durations})"
        )
        return record

    def cancel(self, baby_id: str, kind: ActivityKind) -> None:
        """
        Discards the session without creating a record.

        Raises:
            NoActiveSession: Nothing to cancel.
        """
        kind = ActivityKind(kind)
        if not self._store.delete_active_session(baby_id, kind):
            raise NoActiveSession(baby_id, kind)
        self._untrack(baby_id, kind)
        logger.info(f"Cancelled {kind.value} session for baby {baby_id}")

    # ------------------------------------------------------------------
    # Display clock
    # ------------------------------------------------------------------

    def tick(self) -> None:
        """Advances the in-memory display of every running session. Never writes."""
        step = self.tick_step
        with self._lock:
            for live in self._live.values():
                live.display_elapsed += step
                if live.display.is_running:
                    live.display.add(step)

    def flush_all(self) -> None:
        """Periodic durable flush of every live session."""
        with self._lock:
            keys = list(self._live)
        for baby_id, kind in keys:
            try:
                self.flush(baby_id, kind)
            except NoActiveSession:
                # Finalized or cancelled elsewhere since the last flush.
                self._untrack(baby_id, kind)

    def display_seconds(self, baby_id: str, kind: ActivityKind) -> dict:
        """
        Returns the displayed durations of a live session.

        Returns:
            Dict with the display buckets and ``elapsed_seconds`` since start.
        """
        kind = ActivityKind(kind)
        with self._lock:
            live = self._live.get((baby_id, kind))
            if live is None:
                raise NoActiveSession(baby_id, kind)
            result = dict(live.display.buckets())
            result["elapsed_seconds"] = live.display_elapsed
        return result

    def get_active(self, baby_id: str, kind: ActivityKind) -> ActiveSession | None:
        """Returns the displayed state of a live session, or the stored one."""
        kind = ActivityKind(kind)
        with self._lock:
            live = self._live.get((baby_id, kind))
            if live is not None:
                return replace(live.session.copy(), timer=replace(live.display))
        return self._store.get_active_session(baby_id, kind)

    def last_nursing_side(self, baby_id: str) -> str | None:
        """Side of the most recent finished nursing session, when it used only one side."""
        record = self._store.get_last_record(
            baby_id, SESSION_ACTIVITY_TYPES[ActivityKind.NURSING].value, ActivityKind.NURSING
        )
        if record is None or record.side not in ("left", "right"):
            return None
        return record.side

    def shutdown(self) -> None:
        """Stops tickers and forgets live sessions. Durable state is untouched."""
        with self._lock:
            self._live.clear()
        self._stop_ticker()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load(self, baby_id: str, kind: ActivityKind) -> ActiveSession:
        session = self._store.get_active_session(baby_id, kind)
        if session is None:
            raise NoActiveSession(baby_id, kind)
        return session

    def _save(self, session: ActiveSession, now: datetime) -> None:
        self._store.update_active_session(session)
        self._track(session, now)

    @staticmethod
    def _current_bucket(timer: SessionTimer) -> str:
        if isinstance(timer, NursingTimer):
            return "right_seconds" if timer.status is NursingStatus.RIGHT else "left_seconds"
        return "seconds"

    def _track(self, session: ActiveSession, now: datetime) -> _LiveSession:
        display = replace(session.timer)
        display.add(elapsed_seconds(session.last_checkpoint_at, now))
        live = _LiveSession(
            session=session.copy(),
            display=display,
            display_elapsed=elapsed_seconds(session.start_time, now),
        )
        with self._lock:
            self._live[(session.baby_id, session.kind)] = live
        self._ensure_ticker()
        return live

    def _untrack(self, baby_id: str, kind: ActivityKind) -> None:
        with self._lock:
            self._live.pop((baby_id, kind), None)
            empty = not self._live
        if empty:
            self._stop_ticker()

    def _ensure_ticker(self) -> None:
        if self._scheduler is None:
            return
        with self._ticker_lock:
            if self._tick_handle is not None:
                return
            self._tick_handle = self._scheduler.schedule_repeating(
                self._tick_interval, self.tick
            )
            if self._auto_flush_interval and self._auto_flush_interval > 0:
                self._flush_handle = self._scheduler.schedule_repeating(
                    self._auto_flush_interval, self.flush_all
                )

    def _stop_ticker(self) -> None:
        if self._scheduler is None:
            return
        with self._ticker_lock:
            with self._lock:
                if self._live:
                    # A session was tracked again after the caller saw an empty map.
                    return
            handles = [h for h in (self._tick_handle, self._flush_handle) if h is not None]
            self._tick_handle = None
            self._flush_handle = None
        # Cancel outside the lock: cancelling joins the ticker thread, which
        # may itself be waiting here from flush_all.
        for handle in handles:
            self._scheduler.cancel(handle)
