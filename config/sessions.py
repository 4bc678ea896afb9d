"""Forex trading session registry (UTC hours)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final


class SessionName(str, Enum):
    TOKYO = "Tokyo"
    LONDON = "London"
    NEW_YORK = "New York"
    SYDNEY = "Sydney"


@dataclass(frozen=True)
class TradingSession:
    name: SessionName
    utc_open_hour: int
    utc_close_hour: int

    @property
    def wraps_midnight(self) -> bool:
        """Close hour at or before the open hour means the session closes the next UTC day."""
        return self.utc_close_hour <= self.utc_open_hour


SESSIONS: Final[tuple[TradingSession, ...]] = (
    TradingSession(SessionName.TOKYO, 0, 9),
    TradingSession(SessionName.LONDON, 7, 16),
    TradingSession(SessionName.NEW_YORK, 12, 21),
    TradingSession(SessionName.SYDNEY, 21, 6),
)

SESSIONS_BY_NAME: Final[dict[SessionName, TradingSession]] = {session.name: session for session in SESSIONS}


def get_session(name: str | SessionName) -> TradingSession:
    """Return the registry entry for a session name; raises KeyError when unknown."""
    try:
        key = SessionName(name)
    except ValueError as exc:
        raise KeyError(name) from exc
    return SESSIONS_BY_NAME[key]
