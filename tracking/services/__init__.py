"""
Session Tracking Services.

Concrete implementations of the tracking interfaces.
"""

from tracking.services.clock_service import SystemClock, ThreadScheduler
from tracking.services.conflict_service import MUTUALLY_EXCLUSIVE, ConflictEvaluator, excludes
from tracking.services.persistence_service import SQLiteSessionStore

__all__ = [
    "ConflictEvaluator",
    "MUTUALLY_EXCLUSIVE",
    "SQLiteSessionStore",
    "SystemClock",
    "ThreadScheduler",
    "excludes",
]
