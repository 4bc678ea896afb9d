from __future__ import annotations

import sqlite3
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status

from api.auth import AuthenticatedUser
from api.deps import get_db, require_user, resolve_now
from config.settings import DISPLAY_TIMEZONE
from config.sessions import SESSIONS, TradingSession
from filters.countdown import duration_ms, format_compact, format_countdown
from filters.display import local_session_times, now_marker_pct, resolve_timezone, timeline_segments
from filters.session_filter import SessionStatus, active_overlap, compute_session_statuses
from storage.selection import load_notification_settings, load_selection

router = APIRouter(prefix="/sessions", tags=["sessions"])


def display_timezone_for(conn: sqlite3.Connection, username: str, tz: str | None) -> str:
    """Explicit ``tz`` wins, then the user's stored preference, then the app default."""
    chosen = tz or load_notification_settings(conn, username).display_timezone or DISPLAY_TIMEZONE
    try:
        resolve_timezone(chosen)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return chosen


def serialize_session(session: TradingSession) -> dict[str, object]:
    return {
        "name": session.name.value,
        "utc_open_hour": session.utc_open_hour,
        "utc_close_hour": session.utc_close_hour,
        "wraps_midnight": session.wraps_midnight,
    }


def serialize_status(item: SessionStatus, *, tz_name: str, now: datetime) -> dict[str, object]:
    local_open, local_close = local_session_times(item.session, tz_name, now.date())
    remaining_ms = duration_ms(item.time_to_next_transition)
    return {
        **serialize_session(item.session),
        "is_active": item.is_active,
        "time_to_next_transition_ms": remaining_ms,
        "countdown": format_countdown(remaining_ms),
        "countdown_compact": format_compact(remaining_ms),
        "next_transition_at": item.next_transition_at.isoformat(),
        "active_pairs": list(item.active_pairs),
        "watched_pairs": list(item.watched_pairs),
        "local_open": local_open,
        "local_close": local_close,
    }


@router.get("/registry")
def get_registry() -> list[dict[str, object]]:
    return [serialize_session(session) for session in SESSIONS]


@router.get("")
def get_sessions(
    tz: str | None = None,
    relevant_only: bool = False,
    now: datetime = Depends(resolve_now),
    conn: sqlite3.Connection = Depends(get_db),
    user: AuthenticatedUser = Depends(require_user),
) -> dict[str, object]:
    tz_name = display_timezone_for(conn, user.username, tz)
    selection = load_selection(conn, user.username)
    statuses = compute_session_statuses(selection, now, relevant_only=relevant_only)
    return {
        "now_utc": now.isoformat(),
        "timezone": tz_name,
        "selected_pairs": selection,
        "overlap": active_overlap(statuses),
        "sessions": [serialize_status(item, tz_name=tz_name, now=now) for item in statuses],
    }


@router.get("/overlap")
def get_overlap(now: datetime = Depends(resolve_now)) -> dict[str, object]:
    overlap = active_overlap(compute_session_statuses([], now))
    return {"now_utc": now.isoformat(), "overlapping": bool(overlap), "sessions": overlap}


@router.get("/timeline")
def get_timeline(now: datetime = Depends(resolve_now)) -> dict[str, object]:
    return {
        "now_utc": now.isoformat(),
        "now_pct": round(now_marker_pct(now), 4),
        "sessions": [
            {
                "name": session.name.value,
                "segments": [
                    {"start_pct": round(start, 4), "width_pct": round(width, 4)}
                    for start, width in timeline_segments(session)
                ],
            }
            for session in SESSIONS
        ],
    }
