"""Per-user pair selection and reminder preferences."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from config.pairs import find_pair
from config.settings import REMINDER_LEAD_MINUTES, SELECTION_CAP
from storage.db import utc_now_iso, write_audit


class SelectionLimitError(ValueError):
    """Raised when adding a pair to a selection that is already at the cap."""


class UnknownPairError(KeyError):
    """Raised when a pair id is not in the registry."""


@dataclass(frozen=True)
class NotificationSettings:
    enabled: bool
    minutes_before: int
    display_timezone: str | None = None


def _registry_id(pair_id: str) -> str:
    pair = find_pair(pair_id)
    if pair is None:
        raise UnknownPairError(pair_id)
    return pair.id


def load_selection(conn: sqlite3.Connection, username: str) -> list[str]:
    """Return the stored pair ids for ``username`` in the order they were added."""
    rows = conn.execute(
        "SELECT pair_id FROM pair_selections WHERE username = ? ORDER BY added_ts_utc, rowid",
        (username,),
    ).fetchall()
    return [str(row[0]) for row in rows]


def add_pair(conn: sqlite3.Connection, username: str, pair_id: str, *, cap: int = SELECTION_CAP) -> list[str]:
    key = _registry_id(pair_id)
    current = load_selection(conn, username)
    if key in current:
        return current
    if len(current) >= cap:
        raise SelectionLimitError(f"Selection already holds {cap} pairs")
    conn.execute(
        "INSERT INTO pair_selections (username, pair_id, added_ts_utc) VALUES (?, ?, ?)",
        (username, key, utc_now_iso()),
    )
    write_audit(conn, actor=username, action="PAIR_SELECTED", details={"pair_id": key})
    conn.commit()
    return current + [key]


def remove_pair(conn: sqlite3.Connection, username: str, pair_id: str) -> list[str]:
    key = _registry_id(pair_id)
    deleted = conn.execute(
        "DELETE FROM pair_selections WHERE username = ? AND pair_id = ?",
        (username, key),
    )
    if deleted.rowcount:
        write_audit(conn, actor=username, action="PAIR_DESELECTED", details={"pair_id": key})
    conn.commit()
    return load_selection(conn, username)


def toggle_pair(conn: sqlite3.Connection, username: str, pair_id: str, *, cap: int = SELECTION_CAP) -> list[str]:
    """Remove the pair when selected, add it otherwise.

    At the cap an unselected pair is ignored and the selection returned unchanged.
    """
    key = _registry_id(pair_id)
    current = load_selection(conn, username)
    if key in current:
        return remove_pair(conn, username, key)
    if len(current) >= cap:
        return current
    return add_pair(conn, username, key, cap=cap)


def clear_selection(conn: sqlite3.Connection, username: str) -> None:
    conn.execute("DELETE FROM pair_selections WHERE username = ?", (username,))
    write_audit(conn, actor=username, action="SELECTION_CLEARED", details=None)
    conn.commit()


def load_notification_settings(conn: sqlite3.Connection, username: str) -> NotificationSettings:
    row = conn.execute(
        "SELECT enabled, minutes_before, display_timezone FROM notification_settings WHERE username = ?",
        (username,),
    ).fetchone()
    if row is None:
        return NotificationSettings(enabled=False, minutes_before=REMINDER_LEAD_MINUTES)
    return NotificationSettings(enabled=bool(row[0]), minutes_before=int(row[1]), display_timezone=row[2])


def save_notification_settings(conn: sqlite3.Connection, username: str, settings: NotificationSettings) -> None:
    conn.execute(
        """
        INSERT INTO notification_settings (username, enabled, minutes_before, display_timezone, updated_ts_utc)
        VALUES (?, ?, ?, ?, ?)
        ON CONFLICT(username) DO UPDATE SET
            enabled = excluded.enabled,
            minutes_before = excluded.minutes_before,
            display_timezone = excluded.display_timezone,
            updated_ts_utc = excluded.updated_ts_utc
        """,
        (username, int(settings.enabled), settings.minutes_before, settings.display_timezone, utc_now_iso()),
    )
    write_audit(
        conn,
        actor=username,
        action="NOTIFICATIONS_UPDATED",
        details={"enabled": settings.enabled, "minutes_before": settings.minutes_before},
    )
    conn.commit()
