"""
Persistence Interface - Active Session and Activity Record Storage.

Defines the contract the session timer and conflict checks use to read and
write durable state.
"""

from abc import ABC, abstractmethod

from tracking.interfaces.session import ActiveSession, ActivityKind, ActivityRecord


class SessionStoreInterface(ABC):
    """
    Interface for session persistence.

    Implementations should handle:
    - At most one active session per (baby_id, kind)
    - Atomic finalization (record written and session removed together)
    - Raising PersistenceFailure when the backend rejects a read or write
    """

    @abstractmethod
    def get_active_session(
        self, baby_id: str, kind: ActivityKind
    ) -> ActiveSession | None:
        """Returns the active session for the baby and kind, if any."""
        pass

    @abstractmethod
    def create_active_session(self, session: ActiveSession) -> ActiveSession:
        """
        Stores a new active session.

        Raises:
            AlreadyActive: The baby already has a session of this kind.
        """
        pass

    @abstractmethod
    def update_active_session(self, session: ActiveSession) -> ActiveSession:
        """
        Writes a checkpoint of an existing session, matched by its id.

        Raises:
            NoActiveSession: The session was finalized or cancelled meanwhile.
        """
        pass

    @abstractmethod
    def delete_active_session(self, baby_id: str, kind: ActivityKind) -> bool:
        """
        Deletes the active session without creating a record.

        Returns:
            True if a session was deleted.
        """
        pass

    @abstractmethod
    def list_open_sessions(self, baby_id: str) -> list[ActiveSession]:
        """Returns all active sessions of the baby across kinds, oldest first."""
        pass

    @abstractmethod
    def create_final_record(self, record: ActivityRecord) -> ActivityRecord:
        """Writes a permanent activity record."""
        pass

    @abstractmethod
    def finalize_active_session(self, record: ActivityRecord) -> ActivityRecord:
        """
        Writes the record and deletes the active session of the same
        (baby_id, kind) as one atomic step.

        Raises:
            NoActiveSession: If the session vanished before the write.
        """
        pass

    @abstractmethod
    def get_last_record(
        self, baby_id: str, activity_type: str, session_kind: ActivityKind | None = None
    ) -> ActivityRecord | None:
        """Returns the most recent record of the type, by start time."""
        pass

    @abstractmethod
    def list_records(self, baby_id: str, limit: int = 50) -> list[ActivityRecord]:
        """Returns the baby's records, newest first."""
        pass
