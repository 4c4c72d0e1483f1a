"""
Conflict Interface - Cross-Activity Overlap Classification.

Defines the contract for checking whether a proposed activity window
overlaps activities that cannot happen at the same time.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from tracking.interfaces.session import ActivityKind


class ActivityType(str, Enum):
    """Activity types as seen by the conflict checks."""

    FEEDING = "feeding"
    SLEEP = "sleep"
    GENERIC_ACTIVITY = "activity"
    PUMPING = "pumping"
    DIAPER = "diaper"
    POTTY = "potty"
    MEDICINE = "medicine"
    TEMPERATURE = "temperature"
    GROWTH = "growth"
    SOLIDS = "solids"


# Session kinds map onto the activity type they conflict as.
SESSION_ACTIVITY_TYPES: dict[ActivityKind, ActivityType] = {
    ActivityKind.NURSING: ActivityType.FEEDING,
    ActivityKind.SLEEP: ActivityType.SLEEP,
    ActivityKind.PUMPING: ActivityType.PUMPING,
}

# Activity types that can have an open (not yet ended) session.
ACTIVITIES_WITH_ACTIVE_SESSIONS = frozenset(SESSION_ACTIVITY_TYPES.values())


class ConflictKind(str, Enum):
    ACTIVE = "active_conflict"
    LOGICAL = "logical_conflict"


@dataclass
class ActiveActivity:
    """
    An open session as seen by the conflict checks.

    Attributes:
        id: Identifier of the open session.
        activity_type: Type the session conflicts as.
        start_time: When the session started.
        description: Human-readable description for dialogs.
    """

    id: str
    activity_type: ActivityType
    start_time: datetime
    description: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.activity_type.value,
            "start_time": self.start_time.isoformat(),
            "description": self.description,
        }


@dataclass
class Conflict:
    """
    A single conflict found for a proposed activity.

    Attributes:
        kind: Blocking (active) or advisory (logical).
        message: Message suitable for a confirmation dialog.
        conflicting_activities: Activities responsible, in evaluation order.
    """

    kind: ConflictKind
    message: str
    conflicting_activities: list[ActiveActivity] = field(default_factory=list)

    @property
    def overridable(self) -> bool:
        return self.kind is ConflictKind.LOGICAL

    def to_dict(self) -> dict:
        return {
            "type": self.kind.value,
            "message": self.message,
            "conflicting_activities": [a.to_dict() for a in self.conflicting_activities],
            "can_override": self.overridable,
        }


@dataclass
class ConflictCheckResult:
    conflicts: list[Conflict] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return len(self.conflicts) > 0

    @property
    def has_active_conflict(self) -> bool:
        return any(c.kind is ConflictKind.ACTIVE for c in self.conflicts)

    def to_dict(self) -> dict:
        return {
            "has_conflicts": self.has_conflicts,
            "conflicts": [c.to_dict() for c in self.conflicts],
        }


class ConflictInterface(ABC):
    """
    Interface for conflict evaluation.

    Implementations must be read-only and idempotent.
    """

    @abstractmethod
    def evaluate(
        self,
        baby_id: str,
        new_type: ActivityType,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
        exclude_id: str | None = None,
        baby_name: str | None = None,
    ) -> ConflictCheckResult:
        """
        Classifies a proposed activity window against open sessions.

        Args:
            baby_id: Subject the activity belongs to.
            new_type: Type of the proposed activity.
            start_time: Proposed start, if known.
            end_time: Proposed end, if known.
            exclude_id: Entry being edited, ignored in all checks.
            baby_name: Optional name used in past-tense messages.

        Returns:
            ConflictCheckResult with zero or more conflicts.
        """
        pass
