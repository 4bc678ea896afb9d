from __future__ import annotations

import sqlite3

from config.settings import APP_ENV
from notifications.alerts import AlertService, build_alert_service
from storage.db import get_app_settings

SMTP_SETTING_KEYS = [
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_USER",
    "SMTP_PASS",
    "SMTP_FROM",
    "ALERT_EMAIL_TO",
    "SMTP_USE_STARTTLS",
    "SMTP_USE_SSL",
    "SMTP_TIMEOUT_SEC",
]


def get_alert_service_for_db(conn: sqlite3.Connection, *, dedupe_seconds: int) -> AlertService:
    settings = get_app_settings(conn, keys=SMTP_SETTING_KEYS)
    return build_alert_service(settings=settings, environment=APP_ENV, dedupe_seconds=dedupe_seconds)
