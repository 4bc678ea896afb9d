# storage/db.py
"""
SQLite persistence for accounts, watched pairs, reminder preferences,
admin-editable settings and the audit trail.
"""

from __future__ import annotations

import json
import os
import sqlite3
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

DB_ENV_VAR = "SESSION_TRACKER_DB_PATH"
DEFAULT_DB_PATH = Path("storage/session_tracker.sqlite")

_TABLES: dict[str, str] = {
    "users": """
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        role TEXT NOT NULL,
        created_ts_utc TEXT NOT NULL
    """,
    "pair_selections": """
        username TEXT NOT NULL,
        pair_id TEXT NOT NULL,
        added_ts_utc TEXT NOT NULL,
        PRIMARY KEY (username, pair_id)
    """,
    "notification_settings": """
        username TEXT PRIMARY KEY,
        enabled INTEGER NOT NULL DEFAULT 0,
        minutes_before INTEGER NOT NULL DEFAULT 15,
        updated_ts_utc TEXT NOT NULL
    """,
    "app_settings": """
        key TEXT PRIMARY KEY,
        value_json TEXT NOT NULL,
        updated_ts_utc TEXT NOT NULL,
        updated_by TEXT NOT NULL
    """,
    "audit_log": """
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        ts_utc TEXT NOT NULL,
        actor TEXT NOT NULL,
        action TEXT NOT NULL,
        details_json TEXT
    """,
}

# (table, column ddl) pairs added after a table first shipped
_MIGRATIONS: tuple[tuple[str, str], ...] = (
    ("notification_settings", "display_timezone TEXT"),
)

_INDEXES: dict[str, str] = {
    "idx_pair_selections_username_added": "pair_selections(username, added_ts_utc)",
    "idx_audit_log_ts_utc": "audit_log(ts_utc)",
    "idx_audit_log_actor": "audit_log(actor, id)",
}


def get_db_path() -> Path:
    """SESSION_TRACKER_DB_PATH when set, else the repo-local default."""
    configured = os.getenv(DB_ENV_VAR)
    return Path(configured) if configured else DEFAULT_DB_PATH


def connect(db_path: Path | None = None) -> sqlite3.Connection:
    """Open the tracker database with Row access; the API closes it from a worker thread."""
    path = Path(db_path) if db_path is not None else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _table_columns(conn: sqlite3.Connection, table: str) -> set[str]:
    return {row["name"] for row in conn.execute(f"PRAGMA table_info({table})")}


def _ensure_column(conn: sqlite3.Connection, table: str, column_ddl: str) -> None:
    """ALTER TABLE ADD COLUMN unless present; new columns must be nullable or defaulted."""
    if column_ddl.split()[0] not in _table_columns(conn, table):
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {column_ddl}")


def init_db(conn: sqlite3.Connection) -> None:
    """Idempotent schema setup: tables, column migrations, then indexes."""
    with conn:
        for table, ddl in _TABLES.items():
            conn.execute(f"CREATE TABLE IF NOT EXISTS {table} ({ddl})")
        for table, column_ddl in _MIGRATIONS:
            _ensure_column(conn, table, column_ddl)
        for index, target in _INDEXES.items():
            conn.execute(f"CREATE INDEX IF NOT EXISTS {index} ON {target}")


def ping(conn: sqlite3.Connection) -> bool:
    try:
        return conn.execute("SELECT 1").fetchone() is not None
    except sqlite3.Error:
        return False


def _dump_json(value: Any) -> str | None:
    return None if value is None else json.dumps(value, sort_keys=True)


def get_app_settings(conn: sqlite3.Connection, keys: Iterable[str] | None = None) -> dict[str, Any]:
    """Decoded app_settings values, optionally restricted to ``keys``."""
    rows = conn.execute("SELECT key, value_json FROM app_settings ORDER BY key").fetchall()
    wanted = set(keys) if keys else None
    return {row["key"]: json.loads(row["value_json"]) for row in rows if wanted is None or row["key"] in wanted}


def put_app_settings(conn: sqlite3.Connection, values: dict[str, Any], *, updated_by: str) -> list[str]:
    """Upsert settings values and record one audit row for the change."""
    changed = sorted(values)
    stamp = utc_now_iso()
    with conn:
        conn.executemany(
            """
            INSERT INTO app_settings (key, value_json, updated_ts_utc, updated_by)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value_json = excluded.value_json,
                updated_ts_utc = excluded.updated_ts_utc,
                updated_by = excluded.updated_by
            """,
            [(key, _dump_json(values[key]), stamp, updated_by) for key in changed],
        )
        write_audit(conn, actor=updated_by, action="SETTINGS_UPDATED", details={"keys": changed})
    return changed


def write_audit(conn: sqlite3.Connection, *, actor: str, action: str, details: dict[str, Any] | None) -> None:
    """Insert an audit row; the caller owns the commit."""
    conn.execute(
        "INSERT INTO audit_log (ts_utc, actor, action, details_json) VALUES (?, ?, ?, ?)",
        (utc_now_iso(), actor, action, _dump_json(details)),
    )
