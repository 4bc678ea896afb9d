# api/deps.py
from __future__ import annotations

import re
import sqlite3
from collections.abc import Generator
from datetime import datetime

from fastapi import Cookie, Depends, HTTPException, status

from api.auth import AuthenticatedUser, get_current_user_from_cookie
from config.settings import API_COOKIE_NAME
from filters.session_filter import to_utc, utc_now
from storage.db import connect

_SPACED_OFFSET = re.compile(r"(T[\d:.]+) (\d{2}:?\d{2})$")


def get_db() -> Generator[sqlite3.Connection, None, None]:
    conn = connect()
    try:
        yield conn
    finally:
        conn.close()


def get_current_user(
    conn: sqlite3.Connection = Depends(get_db),
    cookie_value: str | None = Cookie(default=None, alias=API_COOKIE_NAME),
) -> AuthenticatedUser:
    if not cookie_value:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return get_current_user_from_cookie(cookie_value, conn)


def require_user(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
    if user.role not in {"user", "admin"}:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
    return user


def require_admin(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
    if user.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return user


def resolve_now(at: str | None = None) -> datetime:
    """Clock dependency; ``at`` (ISO-8601) pins the instant, otherwise wall-clock UTC.

    An unencoded ``+HH:MM`` offset arrives as a space and is restored.
    """
    if not at:
        return utc_now()
    text = _SPACED_OFFSET.sub(r"\1+\2", at.strip()).replace("Z", "+00:00")
    try:
        return to_utc(datetime.fromisoformat(text))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid 'at' timestamp") from exc
