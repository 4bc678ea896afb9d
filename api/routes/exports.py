from __future__ import annotations

import sqlite3
from datetime import datetime
from io import BytesIO

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from openpyxl import Workbook
from openpyxl.styles import Font

from api.auth import AuthenticatedUser
from api.deps import get_db, require_user, resolve_now
from api.routes.sessions import display_timezone_for, serialize_status
from filters.session_filter import compute_session_statuses
from storage.selection import load_selection

router = APIRouter(prefix="/exports", tags=["exports"])

HEADERS = [
    "name",
    "utc_open_hour",
    "utc_close_hour",
    "wraps_midnight",
    "local_open",
    "local_close",
    "is_active",
    "countdown",
    "next_transition_at",
    "active_pairs",
    "watched_pairs",
]


@router.get("/sessions.xlsx")
def export_sessions_xlsx(
    tz: str | None = None,
    relevant_only: bool = False,
    now: datetime = Depends(resolve_now),
    conn: sqlite3.Connection = Depends(get_db),
    user: AuthenticatedUser = Depends(require_user),
) -> StreamingResponse:
    tz_name = display_timezone_for(conn, user.username, tz)
    statuses = compute_session_statuses(load_selection(conn, user.username), now, relevant_only=relevant_only)

    wb = Workbook()
    ws = wb.active
    ws.title = "sessions"
    ws.append(HEADERS)
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for item in statuses:
        row = serialize_status(item, tz_name=tz_name, now=now)
        ws.append([", ".join(row[key]) if isinstance(row[key], list) else row[key] for key in HEADERS])
    ws.append([])
    ws.append(["generated_utc", now.isoformat(), "timezone", tz_name])

    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return StreamingResponse(
        buffer,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": 'attachment; filename="sessions.xlsx"'},
    )
