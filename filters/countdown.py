"""Countdown formatting for session transitions."""

from __future__ import annotations

from datetime import timedelta


def duration_ms(value: timedelta) -> int:
    return int(value.total_seconds() * 1000)


def _split(milliseconds: float) -> tuple[int, int, int]:
    total_seconds = int(max(milliseconds, 0) // 1000)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return hours, minutes, seconds


def format_countdown(milliseconds: float) -> str:
    """Format as ``HH:MM:SS``; negatives clamp to zero, fractional seconds are floored."""
    hours, minutes, seconds = _split(milliseconds)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_compact(milliseconds: float) -> str:
    """Format as ``Xh Ym Zs``, dropping leading zero units."""
    hours, minutes, seconds = _split(milliseconds)
    if hours > 0:
        return f"{hours}h {minutes}m {seconds}s"
    if minutes > 0:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"
