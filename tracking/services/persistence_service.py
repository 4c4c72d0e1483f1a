"""
Persistence Service - SQLite Session Store.

Implements SessionStoreInterface on top of utils.db. Every public method
runs in its own transaction; finalize_active_session writes the record and
removes the session in the same one.
"""

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from logging_config import get_logger
from tracking.errors import AlreadyActive, NoActiveSession, PersistenceFailure
from tracking.interfaces.persistence import SessionStoreInterface
from tracking.interfaces.session import (
    ActiveSession,
    ActivityKind,
    ActivityRecord,
    timer_from_fields,
)
from utils.db import (
    closing_connection,
    delete_active_session,
    fetch_active_session,
    fetch_last_record,
    fetch_open_sessions,
    fetch_records,
    insert_active_session,
    insert_record,
    update_active_session,
)

logger = get_logger(__name__)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def session_to_row(session: ActiveSession) -> dict:
    status = session.timer.status
    row = {
        "session_id": session.id,
        "baby_id": session.baby_id,
        "kind": session.kind.value,
        "start_time": _iso(session.start_time),
        "status": status.value if status is not None else None,
        "last_checkpoint_at": _iso(session.last_checkpoint_at),
        "notes": session.notes,
        "extra_json": json.dumps(session.extra) if session.extra else None,
    }
    row.update(session.timer.buckets())
    return row


def row_to_session(row: dict) -> ActiveSession:
    kind = ActivityKind(row["kind"])
    buckets = {
        key: row.get(key)
        for key in ("left_seconds", "right_seconds", "paused_seconds", "seconds")
    }
    return ActiveSession(
        id=row["session_id"],
        baby_id=row["baby_id"],
        start_time=_parse(row["start_time"]),
        timer=timer_from_fields(kind, row.get("status"), buckets),
        last_checkpoint_at=_parse(row["last_checkpoint_at"]),
        notes=row.get("notes"),
        extra=json.loads(row["extra_json"]) if row.get("extra_json") else {},
    )


def record_to_row(record: ActivityRecord) -> dict:
    return {
        "record_id": record.id,
        "baby_id": record.baby_id,
        "activity_type": record.activity_type,
        "session_kind": record.session_kind.value if record.session_kind else None,
        "start_time": _iso(record.start_time),
        "end_time": _iso(record.end_time),
        "durations_json": json.dumps(record.durations) if record.durations else None,
        "side": record.side,
        "notes": record.notes,
        "extra_json": json.dumps(record.extra) if record.extra else None,
    }


def row_to_record(row: dict) -> ActivityRecord:
    return ActivityRecord(
        id=row["record_id"],
        baby_id=row["baby_id"],
        activity_type=row["activity_type"],
        session_kind=ActivityKind(row["session_kind"]) if row.get("session_kind") else None,
        start_time=_parse(row["start_time"]),
        end_time=_parse(row.get("end_time")),
        durations=json.loads(row["durations_json"]) if row.get("durations_json") else {},
        side=row.get("side"),
        notes=row.get("notes"),
        extra=json.loads(row["extra_json"]) if row.get("extra_json") else {},
    )


class SQLiteSessionStore(SessionStoreInterface):
    """
    Stores active sessions and activity records in SQLite.

    Features:
    - One row per (baby_id, kind) enforced by a unique constraint
    - Atomic finalization
    - sqlite3 errors surface as PersistenceFailure
    """

    def __init__(self, db_path: Path | str | None = None):
        """
        Initialize the store.

        Args:
            db_path: Database file. Uses OUTPUT_DIR/DB_FILENAME from config if not provided.
        """
        self._db_path = db_path

    @contextmanager
    def _transaction(self, action: str):
        try:
            with closing_connection(self._db_path) as conn:
                yield conn
        except sqlite3.Error as e:
            logger.error(f"Session store failed to {action}: {e}", exc_info=True)
            raise PersistenceFailure(f"Could not {action}: {e}") from e

    def get_active_session(
        self, baby_id: str, kind: ActivityKind
    ) -> ActiveSession | None:
        with self._transaction("read active session") as conn:
            row = fetch_active_session(conn, baby_id, kind.value)
        return row_to_session(row) if row else None

    def create_active_session(self, session: ActiveSession) -> ActiveSession:
        with self._transaction("create active session") as conn:
            try:
                insert_active_session(conn, session_to_row(session))
            except sqlite3.IntegrityError as e:
                # UNIQUE (baby_id, kind): another start won the race.
                logger.warning(
                    f"Start of {session.kind.value} for baby {session.baby_id} lost to a concurrent start: {e}"
                )
                raise AlreadyActive(session.baby_id, session.kind) from e
        return session

    def update_active_session(self, session: ActiveSession) -> ActiveSession:
        with self._transaction("write active session") as conn:
            updated = update_active_session(conn, session_to_row(session))
        if updated == 0:
            raise NoActiveSession(session.baby_id, session.kind)
        logger.debug(
            f"Checkpoint {session.kind.value} for baby {session.baby_id}: "
            f"{session.timer.buckets()} at {session.last_checkpoint_at.isoformat()}"
        )
        return session

    def delete_active_session(self, baby_id: str, kind: ActivityKind) -> bool:
        with self._transaction("delete active session") as conn:
            deleted = delete_active_session(conn, baby_id, kind.value)
        return deleted > 0

    def list_open_sessions(self, baby_id: str) -> list[ActiveSession]:
        with self._transaction("list open sessions") as conn:
            rows = fetch_open_sessions(conn, baby_id)
        return [row_to_session(r) for r in rows]

    def create_final_record(self, record: ActivityRecord) -> ActivityRecord:
        with self._transaction("write activity record") as conn:
            insert_record(conn, record_to_row(record))
        return record

    def finalize_active_session(self, record: ActivityRecord) -> ActivityRecord:
        kind = record.session_kind
        with self._transaction("finalize active session") as conn:
            # The delete goes first so a vanished session aborts before the insert.
            if delete_active_session(conn, record.baby_id, kind.value) == 0:
                raise NoActiveSession(record.baby_id, kind)
            insert_record(conn, record_to_row(record))
        return record

    def get_last_record(
        self, baby_id: str, activity_type: str, session_kind: ActivityKind | None = None
    ) -> ActivityRecord | None:
        with self._transaction("read last record") as conn:
            row = fetch_last_record(
                conn, baby_id, activity_type, session_kind.value if session_kind else None
            )
        return row_to_record(row) if row else None

    def list_records(self, baby_id: str, limit: int = 50) -> list[ActivityRecord]:
        with self._transaction("list activity records") as conn:
            rows = fetch_records(conn, baby_id, limit)
        return [row_to_record(r) for r in rows]
