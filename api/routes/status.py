from __future__ import annotations

import sqlite3

from fastapi import APIRouter, Depends

from api.auth import AuthenticatedUser
from api.deps import get_current_user, get_db
from config.settings import SELECTION_CAP
from storage.db import ping
from storage.selection import load_selection

router = APIRouter(tags=["status"])


@router.get("/health")
def get_health(conn: sqlite3.Connection = Depends(get_db)) -> dict[str, object]:
    db_ok = ping(conn)
    return {"status": "ok" if db_ok else "degraded", "db": db_ok}


@router.get("/me")
def get_me(conn: sqlite3.Connection = Depends(get_db), user: AuthenticatedUser = Depends(get_current_user)) -> dict[str, object]:
    return {
        "username": user.username,
        "role": user.role,
        "selected_pairs": load_selection(conn, user.username),
        "selection_cap": SELECTION_CAP,
    }
