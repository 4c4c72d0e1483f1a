"""
Session Interface - Active Session and Activity Record Model.

Defines the data carried by resumable timed activities (nursing, pumping,
sleep) while they are in progress, and the immutable record they become
once finalized.

Each session kind owns its own timer variant, so a nursing status can never
be attached to a pumping session and vice versa.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import ClassVar


class ActivityKind(str, Enum):
    """Activity kinds that support resumable sessions."""

    NURSING = "nursing"
    PUMPING = "pumping"
    SLEEP = "sleep"


class NursingStatus(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    PAUSED = "paused"


class PumpingStatus(str, Enum):
    RUNNING = "running"
    PAUSED = "paused"


@dataclass
class NursingTimer:
    """
    Accumulated nursing time split across left, right and paused buckets.

    Attributes:
        status: Bucket currently receiving elapsed time.
        left_seconds: Seconds spent on the left side.
        right_seconds: Seconds spent on the right side.
        paused_seconds: Seconds spent paused.
    """

    kind: ClassVar[ActivityKind] = ActivityKind.NURSING
    status_type: ClassVar[type] = NursingStatus

    status: NursingStatus = NursingStatus.LEFT
    left_seconds: int = 0
    right_seconds: int = 0
    paused_seconds: int = 0

    @property
    def is_running(self) -> bool:
        return self.status is not NursingStatus.PAUSED

    @property
    def fed_seconds(self) -> int:
        """Time actually spent nursing (paused time excluded)."""
        return self.left_seconds + self.right_seconds

    @property
    def total_seconds(self) -> int:
        return self.left_seconds + self.right_seconds + self.paused_seconds

    def add(self, seconds: int) -> None:
        """Adds seconds to the bucket selected by the current status."""
        if self.status is NursingStatus.LEFT:
            self.left_seconds += seconds
        elif self.status is NursingStatus.RIGHT:
            self.right_seconds += seconds
        else:
            self.paused_seconds += seconds

    def buckets(self) -> dict[str, int]:
        return {
            "left_seconds": self.left_seconds,
            "right_seconds": self.right_seconds,
            "paused_seconds": self.paused_seconds,
        }

    def with_buckets(self, buckets: dict[str, int]) -> "NursingTimer":
        return replace(self, **buckets)


@dataclass
class PumpingTimer:
    """
    Accumulated pumping time in a single counter.

    Attributes:
        status: Whether the counter is currently advancing.
        seconds: Seconds pumped so far.
    """

    kind: ClassVar[ActivityKind] = ActivityKind.PUMPING
    status_type: ClassVar[type] = PumpingStatus

    status: PumpingStatus = PumpingStatus.RUNNING
    seconds: int = 0

    @property
    def is_running(self) -> bool:
        return self.status is PumpingStatus.RUNNING

    @property
    def total_seconds(self) -> int:
        return self.seconds

    def add(self, seconds: int) -> None:
        # Paused pumping time is not kept anywhere.
        if self.is_running:
            self.seconds += seconds

    def buckets(self) -> dict[str, int]:
        return {"seconds": self.seconds}

    def with_buckets(self, buckets: dict[str, int]) -> "PumpingTimer":
        return replace(self, **buckets)


@dataclass
class SleepTimer:
    """Sleep has no pause and no buckets: its duration is always measured from start_time."""

    kind: ClassVar[ActivityKind] = ActivityKind.SLEEP
    status_type: ClassVar[type | None] = None

    @property
    def status(self) -> None:
        return None

    @property
    def is_running(self) -> bool:
        return True

    @property
    def total_seconds(self) -> int:
        return 0

    def add(self, seconds: int) -> None:
        pass

    def buckets(self) -> dict[str, int]:
        return {}

    def with_buckets(self, buckets: dict[str, int]) -> "SleepTimer":
        return SleepTimer()


SessionTimer = NursingTimer | PumpingTimer | SleepTimer

TIMER_TYPES: dict[ActivityKind, type] = {
    ActivityKind.NURSING: NursingTimer,
    ActivityKind.PUMPING: PumpingTimer,
    ActivityKind.SLEEP: SleepTimer,
}


def parse_status(kind: ActivityKind, value) -> Enum | None:
    """
    Converts a raw status value into the status type of the given kind.

    Raises:
        ValueError: If the value is not a valid status for the kind.
    """
    status_type = TIMER_TYPES[kind].status_type
    if status_type is None:
        if value is not None:
            raise ValueError(f"{kind.value} sessions have no status")
        return None
    if isinstance(value, status_type):
        return value
    return status_type(value)


def new_timer(kind: ActivityKind, status=None) -> SessionTimer:
    """Creates a zeroed timer for the kind, optionally in the given status."""
    timer_type = TIMER_TYPES[kind]
    if timer_type is SleepTimer:
        return SleepTimer()
    if status is None:
        return timer_type()
    return timer_type(status=parse_status(kind, status))


def timer_from_fields(kind: ActivityKind, status, buckets: dict[str, int]) -> SessionTimer:
    """Rebuilds a timer from stored status and bucket values."""
    timer = new_timer(kind, status)
    known = timer.buckets().keys()
    return timer.with_buckets({k: int(v or 0) for k, v in buckets.items() if k in known})


@dataclass
class ActiveSession:
    """
    A not-yet-finalized timed activity.

    Attributes:
        baby_id: Owning subject.
        start_time: When the session conceptually began.
        timer: Kind-specific status and accumulated durations.
        last_checkpoint_at: When accumulated durations were last written durably.
        id: Opaque identifier, stable until finalization or cancellation.
        notes: Free text carried to the final record.
        extra: Kind-specific optional fields carried to the final record.
    """

    baby_id: str
    start_time: datetime
    timer: SessionTimer
    last_checkpoint_at: datetime
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    notes: str | None = None
    extra: dict = field(default_factory=dict)

    @property
    def kind(self) -> ActivityKind:
        return self.timer.kind

    @property
    def status(self):
        return self.timer.status

    def copy(self) -> "ActiveSession":
        return replace(self, timer=replace(self.timer), extra=dict(self.extra))

    def to_dict(self) -> dict:
        status = self.timer.status
        return {
            "id": self.id,
            "baby_id": self.baby_id,
            "kind": self.kind.value,
            "start_time": self.start_time.isoformat(),
            "status": status.value if status is not None else None,
            "last_checkpoint_at": self.last_checkpoint_at.isoformat(),
            "durations": self.timer.buckets(),
            "notes": self.notes,
            "extra": dict(self.extra),
        }


@dataclass(frozen=True)
class ActivityRecord:
    """
    Permanent, immutable activity entry.

    Finalized sessions carry their buckets in ``durations``; atomic entries
    (bottle feedings, diapers, ...) are written directly with an empty one.
    """

    baby_id: str
    activity_type: str
    start_time: datetime
    end_time: datetime | None = None
    durations: dict = field(default_factory=dict)
    side: str | None = None
    notes: str | None = None
    extra: dict = field(default_factory=dict)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    session_kind: ActivityKind | None = None

    @property
    def duration_seconds(self) -> int | None:
        if self.end_time is None:
            return None
        return int((self.end_time - self.start_time).total_seconds())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "baby_id": self.baby_id,
            "activity_type": self.activity_type,
            "session_kind": self.session_kind.value if self.session_kind else None,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_seconds": self.duration_seconds,
            "durations": dict(self.durations),
            "side": self.side,
            "notes": self.notes,
            "extra": dict(self.extra),
        }
