"""Once-per-second refresh loop over the session-status engine."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime

from config.settings import TICK_INTERVAL_SEC
from filters.countdown import duration_ms, format_compact
from filters.session_filter import Clock, SessionStatus, active_overlap, compute_session_statuses, utc_now
from notifications.reminders import ReminderDispatcher

SelectionSource = Callable[[], list[str]]


class SessionTicker:
    """Recompute statuses each tick; report session transitions and fire reminders."""

    def __init__(
        self,
        selection_source: SelectionSource,
        *,
        clock: Clock = utc_now,
        dispatcher: ReminderDispatcher | None = None,
        relevant_only: bool = False,
        username: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.selection_source = selection_source
        self.clock = clock
        self.dispatcher = dispatcher
        self.relevant_only = relevant_only
        self.username = username
        self.logger = logger or logging.getLogger("session_tracker.ticker")
        self._last_active: set[str] | None = None
        self._last_overlap: list[str] = []

    def tick(self, now_utc: datetime | None = None) -> list[SessionStatus]:
        now = now_utc or self.clock()
        statuses = compute_session_statuses(self.selection_source(), now, relevant_only=self.relevant_only)
        self._report_transitions(statuses, now)
        if self.dispatcher is not None:
            self.dispatcher.dispatch(statuses, username=self.username)
        return statuses

    def _report_transitions(self, statuses: list[SessionStatus], now: datetime) -> None:
        """Log open/close/overlap changes since the previous tick and alert on them.

        The first tick only logs a snapshot.
        """
        active = {status.name for status in statuses if status.is_active}
        first_tick = self._last_active is None
        if first_tick:
            for status in statuses:
                self.logger.info(
                    "%s %s next_change_in=%s pairs=%s",
                    status.name,
                    "OPEN" if status.is_active else "CLOSED",
                    format_compact(duration_ms(status.time_to_next_transition)),
                    ",".join(status.watched_pairs) or "-",
                )
        else:
            for status in statuses:
                was_active = status.name in self._last_active
                if status.is_active == was_active:
                    continue
                if status.is_active:
                    self.logger.info("%s OPENED active_pairs=%s", status.name, ",".join(status.active_pairs) or "-")
                else:
                    self.logger.info(
                        "%s CLOSED reopens_in=%s",
                        status.name,
                        format_compact(duration_ms(status.time_to_next_transition)),
                    )
                if self.dispatcher is not None:
                    self.dispatcher.announce_transition(status, username=self.username)

        overlap = active_overlap(statuses)
        if overlap and overlap != self._last_overlap:
            self.logger.info("OVERLAP %s", " + ".join(overlap))
            if self.dispatcher is not None and not first_tick:
                self.dispatcher.announce_overlap(overlap, now, username=self.username)
        self._last_overlap = overlap
        self._last_active = active


    def run(
        self,
        *,
        iterations: int | None = None,
        interval_sec: float = TICK_INTERVAL_SEC,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Tick until ``iterations`` is reached, or forever when it is None."""
        count = 0
        while iterations is None or count < iterations:
            self.tick()
            count += 1
            if iterations is None or count < iterations:
                sleep(interval_sec)
