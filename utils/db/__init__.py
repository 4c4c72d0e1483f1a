"""
Tracker Database Module.

This package provides modular database access for active sessions and
activity records. All functions are re-exported here.

Usage:
    from utils.db import closing_connection, fetch_active_session
    # or
    from utils.db.sessions import fetch_active_session
"""

# Connection and Schema
from utils.db.connection import (
    DB_FILENAME,
    _get_db_path,
    _init_schema,
    closing_connection,
    get_connection,
)

# Activity Record Operations
from utils.db.records import (
    fetch_last_record,
    fetch_records,
    insert_record,
)

# Active Session Operations
from utils.db.sessions import (
    delete_active_session,
    fetch_active_session,
    fetch_open_sessions,
    insert_active_session,
    update_active_session,
)

__all__ = [
    # Connection
    "DB_FILENAME",
    "_get_db_path",
    "closing_connection",
    "get_connection",
    "_init_schema",
    # Active Sessions
    "fetch_active_session",
    "fetch_open_sessions",
    "insert_active_session",
    "update_active_session",
    "delete_active_session",
    # Records
    "insert_record",
    "fetch_last_record",
    "fetch_records",
]
