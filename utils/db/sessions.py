"""
Active Session CRUD Operations.

Rows are plain dicts; conversion to session objects happens in the
persistence service. None of these functions commit: the caller owns the
transaction (see closing_connection).
"""

import sqlite3
from typing import Any

_SESSION_COLUMNS = (
    "session_id",
    "baby_id",
    "kind",
    "start_time",
    "status",
    "left_seconds",
    "right_seconds",
    "paused_seconds",
    "seconds",
    "last_checkpoint_at",
    "notes",
    "extra_json",
)


def fetch_active_session(
    conn: sqlite3.Connection, baby_id: str, kind: str
) -> dict[str, Any] | None:
    row = conn.execute(
        """
        SELECT *
        FROM active_sessions
        WHERE baby_id = ? AND kind = ?
        LIMIT 1;
        """,
        (baby_id, kind),
    ).fetchone()
    return dict(row) if row else None


def fetch_open_sessions(conn: sqlite3.Connection, baby_id: str) -> list[dict[str, Any]]:
    rows = conn.execute(
        """
        SELECT *
        FROM active_sessions
        WHERE baby_id = ?
        ORDER BY start_time ASC, kind ASC;
        """,
        (baby_id,),
    ).fetchall()
    return [dict(r) for r in rows]


def insert_active_session(conn: sqlite3.Connection, row: dict[str, Any]) -> None:
    """Inserts a new session. A second one for (baby_id, kind) violates the unique constraint."""
    placeholders = ", ".join("?" for _ in _SESSION_COLUMNS)
    conn.execute(
        f"""
        INSERT INTO active_sessions ({", ".join(_SESSION_COLUMNS)})
        VALUES ({placeholders});
        """,
        tuple(row.get(col) for col in _SESSION_COLUMNS),
    )


def update_active_session(conn: sqlite3.Connection, row: dict[str, Any]) -> int:
    """Overwrites the mutable columns of an existing session; returns the rowcount."""
    columns = [col for col in _SESSION_COLUMNS if col not in ("session_id", "baby_id", "kind")]
    assignments = ", ".join(f"{col} = ?" for col in columns)
    cur = conn.execute(
        f"""
        UPDATE active_sessions
        SET {assignments},
            updated_at = CURRENT_TIMESTAMP
        WHERE session_id = ?;
        """,
        (*(row.get(col) for col in columns), row["session_id"]),
    )
    return cur.rowcount


def delete_active_session(conn: sqlite3.Connection, baby_id: str, kind: str) -> int:
    cur = conn.execute(
        "DELETE FROM active_sessions WHERE baby_id = ? AND kind = ?;",
        (baby_id, kind),
    )
    return cur.rowcount
