"""
Session Tracking Interfaces.

This package defines the abstract interfaces and data classes shared by
the session timer and the conflict checks. These interfaces enable:
- Clear service boundaries
- Dependency injection (storage, clock, scheduler)
- Independent testing of each component

ARCHITECTURE:
- SessionTimerManager only coordinates these interfaces
- Concrete implementations live in services/
- No direct dependencies between implementations
"""

from tracking.interfaces.clock import ClockInterface, SchedulerInterface
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
from tracking.interfaces.session import (
    ActiveSession,
    ActivityKind,
    ActivityRecord,
    NursingStatus,
    NursingTimer,
    PumpingStatus,
    PumpingTimer,
    SleepTimer,
)

__all__ = [
    # Interfaces
    "ClockInterface",
    "SchedulerInterface",
    "SessionStoreInterface",
    "ConflictInterface",
    # Data Classes
    "ActiveSession",
    "ActivityRecord",
    "NursingTimer",
    "PumpingTimer",
    "SleepTimer",
    "ActiveActivity",
    "Conflict",
    "ConflictCheckResult",
    # Enums
    "ActivityKind",
    "ActivityType",
    "ConflictKind",
    "NursingStatus",
    "PumpingStatus",
    # Tables
    "ACTIVITIES_WITH_ACTIVE_SESSIONS",
    "SESSION_ACTIVITY_TYPES",
]
