from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from api.auth import AuthenticatedUser
from api.deps import get_db, require_user, resolve_now
from filters.countdown import duration_ms, format_compact
from filters.display import resolve_timezone
from filters.session_filter import compute_session_statuses
from notifications.reminders import plan_reminders
from storage.selection import (
    NotificationSettings,
    load_notification_settings,
    load_selection,
    save_notification_settings,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


class NotificationSettingsBody(BaseModel):
    enabled: bool
    minutes_before: int = Field(default=15, ge=1, le=240)
    display_timezone: str | None = None


def _settings_payload(settings: NotificationSettings) -> dict[str, object]:
    return {
        "enabled": settings.enabled,
        "minutes_before": settings.minutes_before,
        "display_timezone": settings.display_timezone,
    }


@router.get("/settings")
def get_notification_settings(
    conn: sqlite3.Connection = Depends(get_db),
    user: AuthenticatedUser = Depends(require_user),
) -> dict[str, object]:
    return _settings_payload(load_notification_settings(conn, user.username))


@router.put("/settings")
def put_notification_settings(
    body: NotificationSettingsBody,
    conn: sqlite3.Connection = Depends(get_db),
    user: AuthenticatedUser = Depends(require_user),
) -> dict[str, object]:
    if body.display_timezone:
        try:
            resolve_timezone(body.display_timezone)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    settings = NotificationSettings(
        enabled=body.enabled,
        minutes_before=body.minutes_before,
        display_timezone=body.display_timezone or None,
    )
    save_notification_settings(conn, user.username, settings)
    return _settings_payload(settings)


@router.get("/upcoming")
def get_upcoming_reminders(
    now: datetime = Depends(resolve_now),
    conn: sqlite3.Connection = Depends(get_db),
    user: AuthenticatedUser = Depends(require_user),
) -> dict[str, object]:
    settings = load_notification_settings(conn, user.username)
    statuses = compute_session_statuses(load_selection(conn, user.username), now)
    reminders = plan_reminders(statuses, timedelta(minutes=settings.minutes_before))
    return {
        "enabled": settings.enabled,
        "minutes_before": settings.minutes_before,
        "reminders": [
            {
                "session": reminder.session,
                "opens_at": reminder.opens_at.isoformat(),
                "fire_at": reminder.fire_at.isoformat(),
                "fire_in": format_compact(duration_ms(reminder.fire_in)),
                "due": reminder.due,
                "pairs": list(reminder.pairs),
            }
            for reminder in reminders
        ],
    }
