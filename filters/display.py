"""Presentation helpers: local session hours and the 24h timeline bar."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytz

from config.sessions import TradingSession
from filters.session_filter import to_utc


def resolve_timezone(tz_name: str) -> pytz.BaseTzInfo:
    try:
        return pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError as exc:
        raise ValueError(f"Unknown timezone: {tz_name!r}") from exc


def local_hour_label(utc_hour: int, tz_name: str, on_date: date) -> str:
    """Render ``utc_hour`` on ``on_date`` as ``HH:MM`` in the given timezone."""
    tz = resolve_timezone(tz_name)
    instant = datetime(on_date.year, on_date.month, on_date.day, tzinfo=timezone.utc) + timedelta(hours=utc_hour)
    return instant.astimezone(tz).strftime("%H:%M")


def local_session_times(session: TradingSession, tz_name: str, on_date: date | None = None) -> tuple[str, str]:
    day = on_date or datetime.now(timezone.utc).date()
    return (
        local_hour_label(session.utc_open_hour, tz_name, day),
        local_hour_label(session.utc_close_hour, tz_name, day),
    )


def timeline_segments(session: TradingSession) -> list[tuple[float, float]]:
    """``(start_pct, width_pct)`` spans on a 0-24h UTC bar; wrapping sessions split in two."""
    start_pct = session.utc_open_hour / 24 * 100
    if not session.wraps_midnight:
        return [(start_pct, (session.utc_close_hour - session.utc_open_hour) / 24 * 100)]
    segments = [(start_pct, (24 - session.utc_open_hour) / 24 * 100)]
    if session.utc_close_hour > 0:
        segments.append((0.0, session.utc_close_hour / 24 * 100))
    return segments


def now_marker_pct(now_utc: datetime) -> float:
    now = to_utc(now_utc)
    elapsed = now - now.replace(hour=0, minute=0, second=0, microsecond=0)
    return elapsed.total_seconds() / 86400 * 100
