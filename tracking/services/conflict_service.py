"""
Conflict Service - Cross-Activity Overlap Checks.

Implements ConflictInterface. Given a proposed activity window, finds open
sessions it cannot coexist with:

- active_conflict: another session kind is running right now (blocking)
- logical_conflict: the window overlaps a mutually exclusive open session
  (advisory, the caller may override)

The evaluator only reads; calling it repeatedly has no side effects.
"""

from datetime import datetime

from core.duration_core import is_timezone_aware
from logging_config import get_logger
from tracking.errors import InvalidTimeRange
from tracking.interfaces.clock import ClockInterface
from tracking.interfaces.conflict import (
    ACTIVITIES_WITH_ACTIVE_SESSIONS,
    SESSION_ACTIVITY_TYPES,
    ActiveActivity,
    ActivityType,
    Conflict,
    ConflictCheckResult,
    ConflictInterface,
    ConflictKind,
)
from tracking.interfaces.persistence import SessionStoreInterface
from tracking.interfaces.session import ActiveSession, ActivityKind

logger = get_logger(__name__)

# Keyed by the NEW activity's type; values are the open types it cannot overlap.
# Pumping is a wildcard and can happen alongside anything.
MUTUALLY_EXCLUSIVE: dict[ActivityType, frozenset[ActivityType]] = {
    ActivityType.SLEEP: frozenset({ActivityType.FEEDING, ActivityType.GENERIC_ACTIVITY}),
    ActivityType.FEEDING: frozenset({ActivityType.SLEEP, ActivityType.GENERIC_ACTIVITY}),
    ActivityType.GENERIC_ACTIVITY: frozenset({ActivityType.SLEEP}),
    ActivityType.PUMPING: frozenset(),
}

_SESSION_LABELS = {
    ActivityKind.NURSING: "Nursing",
    ActivityKind.SLEEP: "Sleep",
    ActivityKind.PUMPING: "Pumping",
}


def excludes(new_type: ActivityType, existing_type: ActivityType) -> bool:
    """True if an activity of new_type cannot overlap an open existing_type."""
    return existing_type in MUTUALLY_EXCLUSIVE.get(new_type, frozenset())


def describe_in_progress(session: ActiveSession) -> str:
    return f"{_SESSION_LABELS[session.kind]} session in progress"


def describe_active_since(session: ActiveSession) -> str:
    return f"{_SESSION_LABELS[session.kind]} session active since {session.start_time.strftime('%H:%M')}"


def to_active_activity(session: ActiveSession, describe=describe_in_progress) -> ActiveActivity:
    return ActiveActivity(
        id=session.id,
        activity_type=SESSION_ACTIVITY_TYPES[session.kind],
        start_time=session.start_time,
        description=describe(session),
    )


class ConflictEvaluator(ConflictInterface):
    """
    Classifies proposed activities against the baby's open sessions.

    Features:
    - Blocking pass for session kinds that would run two clocks at once
    - Advisory pass driven by the mutual-exclusion table
    - Retroactive pass for entries logged in the past
    """

    def __init__(self, store: SessionStoreInterface, clock: ClockInterface):
        self._store = store
        self._clock = clock

    def get_active_activities(
        self, baby_id: str, exclude_id: str | None = None, describe=describe_in_progress
    ) -> list[ActiveActivity]:
        """Open sessions of the baby as ActiveActivity, oldest first."""
        sessions = self._store.list_open_sessions(baby_id)
        return [
            to_active_activity(s, describe)
            for s in sessions
            if exclude_id is None or s.id != exclude_id
        ]

    def evaluate(
        self,
        baby_id: str,
        new_type: ActivityType,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
        exclude_id: str | None = None,
        baby_name: str | None = None,
    ) -> ConflictCheckResult:
        new_type = ActivityType(new_type)
        for name, value in (("start_time", start_time), ("end_time", end_time)):
            if value is not None and not is_timezone_aware(value):
                raise InvalidTimeRange(f"{name} must be timezone-aware, got {value.isoformat()}")
        conflicts: list[Conflict] = []
        active = self.get_active_activities(baby_id, exclude_id)

        editing_completed = exclude_id is not None and end_time is not None
        if (
            not editing_completed
            and new_type in ACTIVITIES_WITH_ACTIVE_SESSIONS
            and new_type is not ActivityType.PUMPING
        ):
            blocking = [
                a
                for a in active
                if a.activity_type is not new_type
                and a.activity_type is not ActivityType.PUMPING
                and self._running_at_start(a, start_time, end_time)
            ]
            if blocking:
                conflicts.append(
                    Conflict(
                        kind=ConflictKind.ACTIVE,
                        message=(
                            f"You are trying to start a {new_type.value} session while "
                            f"there is an ongoing {blocking[0].activity_type.value} session."
                        ),
                        conflicting_activities=blocking,
                    )
                )

        # Advisory checks only when nothing is blocking.
        if not conflicts:
            logical = [
                a
                for a in active
                if excludes(new_type, a.activity_type)
                and self._overlaps_window(a, start_time, end_time)
            ]
            if logical:
                conflicts.append(
                    Conflict(
                        kind=ConflictKind.LOGICAL,
                        message=(
                            f"This would conflict with your active {logical[0].activity_type.value} "
                            f"session. Are you sure you want to proceed?"
                        ),
                        conflicting_activities=logical,
                    )
                )

        if start_time is not None and start_time < self._clock.now():
            conflicts.extend(
                self._check_past_event(baby_id, new_type, start_time, end_time, exclude_id, baby_name)
            )

        if conflicts:
            logger.info(
                f"Conflicts for {new_type.value} (baby {baby_id}): "
                f"{[c.kind.value for c in conflicts]}"
            )
        return ConflictCheckResult(conflicts=conflicts)

    @staticmethod
    def _running_at_start(
        active: ActiveActivity, start_time: datetime | None, end_time: datetime | None
    ) -> bool:
        if start_time is not None and end_time is not None:
            return active.start_time < end_time
        if start_time is not None:
            # Already running when the new session would start.
            return active.start_time <= start_time
        return True

    @staticmethod
    def _overlaps_window(
        active: ActiveActivity, start_time: datetime | None, end_time: datetime | None
    ) -> bool:
        if start_time is not None and end_time is not None:
            return active.start_time < end_time
        # Without an end both are open, so they overlap.
        return True

    def _check_past_event(
        self,
        baby_id: str,
        new_type: ActivityType,
        start_time: datetime,
        end_time: datetime | None,
        exclude_id: str | None,
        baby_name: str | None,
    ) -> list[Conflict]:
        """
        Re-checks sessions that are open now against an entry logged in the past.

        The overlap filter is only "started before the entry ended" (or before
        now for an open entry); an open session that started after the entry
        began still counts.
        """
        if new_type not in ACTIVITIES_WITH_ACTIVE_SESSIONS:
            return []

        candidates = self.get_active_activities(baby_id, exclude_id, describe_active_since)
        cutoff = end_time if end_time is not None else self._clock.now()
        logical = [
            a
            for a in candidates
            if a.start_time < cutoff and excludes(new_type, a.activity_type)
        ]
        if not logical:
            return []

        subject = f"{baby_name} was " if baby_name else ""
        return [
            Conflict(
                kind=ConflictKind.LOGICAL,
                message=(
                    f"{subject}{logical[0].activity_type.value} at the time of this activity, "
                    f"are you sure you want to log it?"
                ),
                conflicting_activities=logical,
            )
        ]
