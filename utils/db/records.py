"""
Activity Record Operations.

Finalized sessions and atomic entries. Records are insert-only.
"""

import sqlite3
from typing import Any

_RECORD_COLUMNS = (
    "record_id",
    "baby_id",
    "activity_type",
    "session_kind",
    "start_time",
    "end_time",
    "durations_json",
    "side",
    "notes",
    "extra_json",
)


def insert_record(conn: sqlite3.Connection, row: dict[str, Any]) -> None:
    placeholders = ", ".join("?" for _ in _RECORD_COLUMNS)
    conn.execute(
        f"""
        INSERT INTO activity_records ({", ".join(_RECORD_COLUMNS)})
        VALUES ({placeholders});
        """,
        tuple(row.get(col) for col in _RECORD_COLUMNS),
    )


def fetch_last_record(
    conn: sqlite3.Connection,
    baby_id: str,
    activity_type: str,
    session_kind: str | None = None,
) -> dict[str, Any] | None:
    query = """
        SELECT *
        FROM activity_records
        WHERE baby_id = ? AND activity_type = ?
    """
    params: list[Any] = [baby_id, activity_type]
    if session_kind:
        query += " AND session_kind = ?"
        params.append(session_kind)
    query += " ORDER BY start_time DESC LIMIT 1;"
    row = conn.execute(query, params).fetchone()
    return dict(row) if row else None


def fetch_records(
    conn: sqlite3.Connection, baby_id: str, limit: int = 50
) -> list[dict[str, Any]]:
    rows = conn.execute(
        """
        SELECT *
        FROM activity_records
        WHERE baby_id = ?
        ORDER BY start_time DESC
        LIMIT ?;
        """,
        (baby_id, limit),
    ).fetchall()
    return [dict(r) for r in rows]
