"""
Database Connection and Schema Management.

This module handles SQLite connection creation and schema initialization.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path

from config import get_config

DB_FILENAME = "tracker.db"

# Module-level cache: initialize schema once per database path.
# Tests point OUTPUT_DIR (or db_path) elsewhere, so schema init must be keyed by db path.
_schema_initialized_paths: set[Path] = set()


def _get_db_path() -> Path:
    cfg = get_config()
    output_dir = Path(cfg["OUTPUT_DIR"])
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir / cfg.get("DB_FILENAME", DB_FILENAME)


def get_connection(db_path: Path | str | None = None) -> sqlite3.Connection:
    global _schema_initialized_paths
    db_path = Path(db_path) if db_path is not None else _get_db_path()
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA foreign_keys=ON;")
    if db_path not in _schema_initialized_paths:
        _init_schema(conn)
        _schema_initialized_paths.add(db_path)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def closing_connection(db_path: Path | str | None = None):
    """Context manager that creates a DB connection and guarantees it is closed.

    Everything executed inside the block is one transaction: committed when
    the block exits normally, rolled back when it raises.

    IMPORTANT: `with sqlite3.Connection as conn:` only manages transactions
    (commit/rollback); it does NOT call conn.close().

    Usage:
        with closing_connection() as conn:
            conn.execute("SELECT ...")
    """
    conn = get_connection(db_path)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _init_schema(conn: sqlite3.Connection) -> None:
    conn.execute("""
        CREATE TABLE IF NOT EXISTS active_sessions (
            session_id TEXT PRIMARY KEY,
            baby_id TEXT NOT NULL,
            kind TEXT NOT NULL,
            start_time TEXT NOT NULL,
            status TEXT,
            left_seconds INTEGER DEFAULT 0,
            right_seconds INTEGER DEFAULT 0,
            paused_seconds INTEGER DEFAULT 0,
            seconds INTEGER DEFAULT 0,
            last_checkpoint_at TEXT NOT NULL,
            notes TEXT,
            extra_json TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
            UNIQUE (baby_id, kind)
        );
        """)
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_active_sessions_baby ON active_sessions(baby_id, start_time);"
    )

    conn.execute("""
        CREATE TABLE IF NOT EXISTS activity_records (
            record_id TEXT PRIMARY KEY,
            baby_id TEXT NOT NULL,
            activity_type TEXT NOT NULL,
            session_kind TEXT,
            start_time TEXT NOT NULL,
            end_time TEXT,
            durations_json TEXT,
            side TEXT,
            notes TEXT,
            extra_json TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        );
        """)
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_activity_records_baby_type_start "
        "ON activity_records(baby_id, activity_type, start_time DESC);"
    )

    conn.commit()
