from __future__ import annotations

import sqlite3
from typing import Any

from fastapi import APIRouter, Depends

from api.auth import AuthenticatedUser
from api.deps import get_db, require_admin
from storage.db import get_app_settings, put_app_settings

router = APIRouter(tags=["settings"])

REDACTED_KEYS = {"SMTP_PASS"}


@router.get("/settings")
def get_settings(conn: sqlite3.Connection = Depends(get_db), user: AuthenticatedUser = Depends(require_admin)) -> dict[str, object]:
    values = get_app_settings(conn)
    return {key: ("***" if key in REDACTED_KEYS else value) for key, value in sorted(values.items())}


@router.put("/settings")
def put_settings(
    payload: dict[str, Any],
    conn: sqlite3.Connection = Depends(get_db),
    user: AuthenticatedUser = Depends(require_admin),
) -> dict[str, object]:
    return {"updated": put_app_settings(conn, payload, updated_by=user.username)}
