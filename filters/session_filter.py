"""Session-status engine: which forex sessions are open and when they next change.

All arithmetic is done on UTC instants. Session boundaries are open-inclusive
and close-exclusive, evaluated at full (sub-hour) precision so that a session
opens exactly on its hour. Display timezones are handled in ``filters.display``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from config.pairs import CurrencyPair, find_pair
from config.sessions import SESSIONS, SessionName, TradingSession

Clock = Callable[[], datetime]

_ZERO = timedelta(0)
_ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class SessionStatus:
    session: TradingSession
    is_active: bool
    time_to_next_transition: timedelta
    next_transition_at: datetime
    active_pairs: tuple[str, ...]
    watched_pairs: tuple[str, ...]

    @property
    def name(self) -> str:
        return self.session.name.value


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _utc_midnight(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def is_session_active(session: TradingSession, now_utc: datetime | None = None) -> bool:
    """Return True when ``now_utc`` falls inside the session window."""
    now = to_utc(now_utc or utc_now())
    elapsed = now - _utc_midnight(now)
    opens = timedelta(hours=session.utc_open_hour)
    closes = timedelta(hours=session.utc_close_hour)
    if session.wraps_midnight:
        return elapsed >= opens or elapsed < closes
    return opens <= elapsed < closes


def next_hour_occurrence(now_utc: datetime, hour: int) -> datetime:
    """First instant at ``hour``:00:00 UTC strictly after ``now_utc``."""
    now = to_utc(now_utc)
    candidate = _utc_midnight(now) + timedelta(hours=hour)
    if candidate <= now:
        candidate += _ONE_DAY
    return candidate


def next_transition(session: TradingSession, now_utc: datetime | None = None) -> tuple[bool, datetime, timedelta]:
    """Return ``(is_active, transition_at, remaining)`` for one session."""
    now = to_utc(now_utc or utc_now())
    active = is_session_active(session, now)
    target_hour = session.utc_close_hour if active else session.utc_open_hour
    target = next_hour_occurrence(now, target_hour)
    return active, target, max(target - now, _ZERO)


def time_to_next_transition(session: TradingSession, now_utc: datetime | None = None) -> timedelta:
    return next_transition(session, now_utc)[2]


def resolve_selection(selection: Iterable[str]) -> list[CurrencyPair]:
    """Map selected ids to registry pairs, dropping unknown ids and duplicates."""
    resolved: list[CurrencyPair] = []
    seen: set[str] = set()
    for pair_id in selection:
        pair = find_pair(pair_id)
        if pair is None or pair.id in seen:
            continue
        seen.add(pair.id)
        resolved.append(pair)
    return resolved


def pairs_in_session(session: TradingSession, selection: Iterable[str]) -> list[str]:
    """Symbols of selected pairs tagged with ``session``, in selection order."""
    return [pair.symbol for pair in resolve_selection(selection) if session.name in pair.sessions]


def session_status(
    session: TradingSession,
    selection: Iterable[str],
    now_utc: datetime | None = None,
) -> SessionStatus:
    now = to_utc(now_utc or utc_now())
    active, target, remaining = next_transition(session, now)
    watched = tuple(pairs_in_session(session, selection))
    return SessionStatus(
        session=session,
        is_active=active,
        time_to_next_transition=remaining,
        next_transition_at=target,
        active_pairs=watched if active else (),
        watched_pairs=watched,
    )


def relevant_sessions(
    selection: Iterable[str],
    sessions: Sequence[TradingSession] = SESSIONS,
) -> list[TradingSession]:
    """Sessions in which at least one selected pair trades."""
    names: set[SessionName] = set()
    for pair in resolve_selection(selection):
        names.update(pair.sessions)
    return [session for session in sessions if session.name in names]


def sort_session_statuses(statuses: Iterable[SessionStatus]) -> list[SessionStatus]:
    """Active sessions first (input order kept), then inactive by soonest opening."""
    return sorted(
        statuses,
        key=lambda status: (not status.is_active, _ZERO if status.is_active else status.time_to_next_transition),
    )


def compute_session_statuses(
    selection: Iterable[str],
    now_utc: datetime | None = None,
    *,
    sessions: Sequence[TradingSession] = SESSIONS,
    relevant_only: bool = False,
    clock: Clock = utc_now,
) -> list[SessionStatus]:
    """Compute display-ordered statuses for every session in ``sessions``."""
    now = to_utc(now_utc or clock())
    selected = list(selection)
    candidates = relevant_sessions(selected, sessions) if relevant_only else list(sessions)
    return sort_session_statuses(session_status(session, selected, now) for session in candidates)


def active_overlap(statuses: Iterable[SessionStatus]) -> list[str]:
    """Names of concurrently open sessions when two or more overlap, else []."""
    active = [status.name for status in statuses if status.is_active]
    return active if len(active) > 1 else []


def is_pair_active(pair: str, now_utc: datetime | None = None) -> bool:
    """Return True when any of the pair's sessions is open.

    Unknown pairs are treated as inactive.
    """
    registry_pair = find_pair(pair)
    if registry_pair is None:
        return False
    now = to_utc(now_utc or utc_now())
    return any(
        is_session_active(session, now) for session in SESSIONS if session.name in registry_pair.sessions
    )
