from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from storage.db import utc_now_iso, write_audit


class UserExistsError(ValueError):
    pass


@dataclass(frozen=True)
class UserRecord:
    id: int
    username: str
    role: str
    password_hash: str


def normalize_username(username: str) -> str:
    return username.strip().lower()


def get_user(conn: sqlite3.Connection, username: str) -> UserRecord | None:
    row = conn.execute(
        "SELECT id, username, role, password_hash FROM users WHERE username = ?",
        (normalize_username(username),),
    ).fetchone()
    if row is None:
        return None
    return UserRecord(id=int(row["id"]), username=str(row["username"]), role=str(row["role"]), password_hash=str(row["password_hash"]))


def create_user(conn: sqlite3.Connection, *, username: str, password_hash: str, role: str) -> UserRecord:
    """Insert a user; raises UserExistsError when the name is taken."""
    name = normalize_username(username)
    if get_user(conn, name) is not None:
        raise UserExistsError(name)
    cur = conn.execute(
        "INSERT INTO users (username, password_hash, role, created_ts_utc) VALUES (?, ?, ?, ?)",
        (name, password_hash, role, utc_now_iso()),
    )
    write_audit(conn, actor=name, action="USER_CREATED", details={"role": role})
    conn.commit()
    return UserRecord(id=int(cur.lastrowid), username=name, role=role, password_hash=password_hash)
