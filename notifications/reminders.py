"""Reminders ahead of session opens, keyed off computed session statuses."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from filters.session_filter import SessionStatus
from notifications.alerts import AlertEvent, AlertService

DEFAULT_LEAD = timedelta(minutes=15)


@dataclass(frozen=True)
class Reminder:
    session: str
    opens_at: datetime
    fire_at: datetime
    fire_in: timedelta
    pairs: tuple[str, ...]

    @property
    def due(self) -> bool:
        return self.fire_in <= timedelta(0)


def plan_reminders(statuses: Iterable[SessionStatus], lead: timedelta = DEFAULT_LEAD) -> list[Reminder]:
    """One reminder per closed session that has at least one watched pair.

    Sessions opening sooner than ``lead`` yield an already-due reminder.
    """
    reminders: list[Reminder] = []
    for status in statuses:
        if status.is_active or not status.watched_pairs:
            continue
        reminders.append(
            Reminder(
                session=status.name,
                opens_at=status.next_transition_at,
                fire_at=status.next_transition_at - lead,
                fire_in=status.time_to_next_transition - lead,
                pairs=status.watched_pairs,
            )
        )
    return sorted(reminders, key=lambda reminder: reminder.fire_in)


class ReminderDispatcher:
    """Sends opening-soon reminders and open/close/overlap notices through an AlertService."""

    def __init__(
        self,
        alerts: AlertService,
        *,
        lead: timedelta = DEFAULT_LEAD,
        logger: logging.Logger | None = None,
    ) -> None:
        self.alerts = alerts
        self.lead = lead
        self.logger = logger or logging.getLogger("session_tracker.reminders")

    def dispatch(self, statuses: Iterable[SessionStatus], *, username: str | None = None) -> list[str]:
        """Send every due reminder once; returns the session names alerted on this call."""
        sent: list[str] = []
        for reminder in plan_reminders(statuses, self.lead):
            if not reminder.due:
                continue
            payload = {
                "session": reminder.session,
                "opens_at_utc": reminder.opens_at.isoformat(),
                "minutes_before": int(self.lead.total_seconds() // 60),
                "pairs": list(reminder.pairs),
                "username": username,
            }
            if self.alerts.send(AlertEvent.SESSION_OPENING_SOON, payload):
                self.logger.info("reminder sent session=%s opens_at=%s", reminder.session, payload["opens_at_utc"])
                sent.append(reminder.session)
        return sent

    def announce_transition(self, status: SessionStatus, *, username: str | None = None) -> bool:
        """SESSION_OPENED / SESSION_CLOSED for a session that just changed state; ignored when nothing is watched."""
        if not status.watched_pairs:
            return False
        if status.is_active:
            event = AlertEvent.SESSION_OPENED
            payload = {
                "session": status.name,
                "closes_at_utc": status.next_transition_at.isoformat(),
                "pairs": list(status.active_pairs),
                "username": username,
            }
        else:
            event = AlertEvent.SESSION_CLOSED
            payload = {"session": status.name, "opens_at_utc": status.next_transition_at.isoformat(), "username": username}
        return self.alerts.send(event, payload)

    def announce_overlap(self, sessions: list[str], at: datetime, *, username: str | None = None) -> bool:
        return self.alerts.send(
            AlertEvent.SESSION_OVERLAP,
            {"sessions": sessions, "time_utc": at.isoformat(), "username": username},
        )
