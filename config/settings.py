# config/settings.py
"""
Application settings for the forex session tracker.
"""

from __future__ import annotations

import os
from typing import Final

import pytz
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


APP_ENV: str = os.getenv("APP_ENV", "prod").strip().lower()

SELECTION_CAP: Final[int] = 10
TICK_INTERVAL_SEC: float = float(os.getenv("TICK_INTERVAL_SEC", "1.0"))
REMINDER_LEAD_MINUTES: int = int(os.getenv("REMINDER_LEAD_MINUTES", "15"))
REMINDERS_ENABLED: bool = _env_bool("REMINDERS_ENABLED", True)
DISPLAY_TIMEZONE: str = os.getenv("DISPLAY_TIMEZONE", "UTC").strip()

LOG_FILE_PATH: str = os.getenv("LOG_FILE_PATH", "logs/session_tracker.log")

API_JWT_SECRET: str = os.getenv("API_JWT_SECRET", "dev-insecure-secret")
API_JWT_ALG: str = os.getenv("API_JWT_ALG", "HS256")
API_JWT_EXPIRES_MIN: int = int(os.getenv("API_JWT_EXPIRES_MIN", str(60 * 24)))

API_COOKIE_NAME: str = os.getenv("API_COOKIE_NAME", "st_auth")
API_COOKIE_SECURE: bool = _env_bool("API_COOKIE_SECURE", False)
API_COOKIE_SAMESITE: str = os.getenv("API_COOKIE_SAMESITE", "lax")

# For localhost development leave API_COOKIE_DOMAIN unset so the cookie is host-only.
API_COOKIE_DOMAIN: str | None = os.getenv("API_COOKIE_DOMAIN")

API_CORS_ORIGINS: list[str] = [
    origin.strip()
    for origin in os.getenv("API_CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if origin.strip()
]

ADMIN_BOOTSTRAP_USER: str | None = os.getenv("ADMIN_BOOTSTRAP_USER")
ADMIN_BOOTSTRAP_PASS: str | None = os.getenv("ADMIN_BOOTSTRAP_PASS")


def validate_settings() -> None:
    """Validate runtime settings that the ticker depends on."""
    if DISPLAY_TIMEZONE not in pytz.all_timezones_set:
        raise ValueError(f"DISPLAY_TIMEZONE is not a known timezone: {DISPLAY_TIMEZONE!r}")
    if REMINDER_LEAD_MINUTES <= 0:
        raise ValueError("REMINDER_LEAD_MINUTES must be a positive number of minutes.")
    if TICK_INTERVAL_SEC <= 0:
        raise ValueError("TICK_INTERVAL_SEC must be positive.")
