"""
Tracking Errors.

Every failure here is recoverable by the caller; none leaves the session
timer in a state that differs from the last successful checkpoint.
"""


class TrackingError(Exception):
    """Base class for session tracking failures."""


class AlreadyActive(TrackingError):
    def __init__(self, baby_id: str, kind):
        self.baby_id = baby_id
        self.kind = kind
        super().__init__(f"A {kind.value} session is already active for baby {baby_id}")


class NoActiveSession(TrackingError):
    def __init__(self, baby_id: str, kind):
        self.baby_id = baby_id
        self.kind = kind
        super().__init__(f"No active {kind.value} session for baby {baby_id}")


class InvalidTimeRange(TrackingError):
    """A start/end combination would produce a non-positive duration."""


class InvalidTransition(TrackingError):
    """The requested status does not exist for the session kind."""


class PersistenceFailure(TrackingError):
    """The storage backend rejected a read or write."""


class ActiveConflict(TrackingError):
    """Blocking overlap with a session that is currently running."""

    def __init__(self, conflicts):
        self.conflicts = list(conflicts)
        message = self.conflicts[0].message if self.conflicts else "Active activity conflicts detected"
        super().__init__(message)


class OverrideRequired(TrackingError):
    """Advisory conflicts exist and the caller did not pass an override."""

    def __init__(self, conflicts):
        self.conflicts = list(conflicts)
        message = self.conflicts[0].message if self.conflicts else "Activity conflicts detected"
        super().__init__(message)
