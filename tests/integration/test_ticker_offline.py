from __future__ import annotations

import io
import logging
from datetime import datetime, timedelta, timezone

from notifications.alerts import AlertEvent, AlertService
from notifications.reminders import ReminderDispatcher
from runtime.ticker import SessionTicker


class _CaptureProvider:
    def __init__(self) -> None:
        self.subjects: list[str] = []

    def send(self, *, event: AlertEvent, subject: str, body: str) -> None:
        self.subjects.append(subject)


def _stream_logger(name: str) -> tuple[logging.Logger, io.StringIO]:
    stream = io.StringIO()
    logger = logging.getLogger(name)
    logger.handlers = [logging.StreamHandler(stream)]
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger, stream


def _stepping_clock(start: datetime, step: timedelta):
    state = {"now": start - step}

    def _clock() -> datetime:
        state["now"] += step
        return state["now"]

    return _clock


def test_ticker_logs_open_and_overlap_transitions() -> None:
    logger, stream = _stream_logger("ticker_transitions_test")
    ticker = SessionTicker(
        lambda: ["eurusd"],
        clock=_stepping_clock(datetime(2024, 1, 1, 6, 59, 59, tzinfo=timezone.utc), timedelta(seconds=1)),
        logger=logger,
    )
    sleeps: list[float] = []

    ticker.run(iterations=2, interval_sec=1.0, sleep=sleeps.append)

    out = stream.getvalue()
    assert sleeps == [1.0]
    assert "Tokyo OPEN" in out
    assert "London CLOSED next_change_in=1s pairs=EURUSD" in out
    assert "London OPENED active_pairs=EURUSD" in out
    assert "OVERLAP Tokyo + London" in out


def test_ticker_reads_fresh_selection_each_tick() -> None:
    logger, _ = _stream_logger("ticker_selection_test")
    selections = [[], ["usdjpy"]]
    ticker = SessionTicker(lambda: selections.pop(0), logger=logger)

    now = datetime(2024, 1, 1, 3, 0, tzinfo=timezone.utc)
    first = {status.name: status for status in ticker.tick(now)}
    second = {status.name: status for status in ticker.tick(now)}

    assert first["Tokyo"].active_pairs == ()
    assert second["Tokyo"].active_pairs == ("USDJPY",)


def test_ticker_dispatches_reminder_once_across_ticks() -> None:
    logger, _ = _stream_logger("ticker_reminder_test")
    provider = _CaptureProvider()
    dispatcher = ReminderDispatcher(AlertService([provider], environment="test", dedupe_seconds=3600))
    ticker = SessionTicker(
        lambda: ["eurusd"],
        clock=_stepping_clock(datetime(2024, 1, 1, 11, 50, tzinfo=timezone.utc), timedelta(seconds=1)),
        dispatcher=dispatcher,
        username="alice",
        logger=logger,
    )

    ticker.run(iterations=3, sleep=lambda _: None)

    assert provider.subjects == ["[test][SESSION_OPENING_SOON] New York"]


def _alerting_ticker(start: datetime, selection: list[str]) -> tuple[SessionTicker, _CaptureProvider]:
    logger, _ = _stream_logger("ticker_alerts_test")
    provider = _CaptureProvider()
    dispatcher = ReminderDispatcher(AlertService([provider], environment="test", dedupe_seconds=3600))
    ticker = SessionTicker(
        lambda: list(selection),
        clock=_stepping_clock(start, timedelta(seconds=1)),
        dispatcher=dispatcher,
        username="alice",
        logger=logger,
    )
    return ticker, provider


def test_ticker_alerts_on_watched_open_and_overlap() -> None:
    ticker, provider = _alerting_ticker(datetime(2024, 1, 1, 6, 59, 59, tzinfo=timezone.utc), ["eurusd"])

    ticker.run(iterations=2, sleep=lambda _: None)

    assert provider.subjects == [
        "[test][SESSION_OPENING_SOON] London",
        "[test][SESSION_OPENED] London",
        "[test][SESSION_OVERLAP] Tokyo + London",
    ]


def test_ticker_alerts_on_watched_close_only() -> None:
    ticker, provider = _alerting_ticker(datetime(2024, 1, 1, 15, 59, 59, tzinfo=timezone.utc), ["eurusd"])

    ticker.run(iterations=2, sleep=lambda _: None)

    assert provider.subjects == ["[test][SESSION_CLOSED] London"]


def test_ticker_skips_open_alert_for_unwatched_session() -> None:
    ticker, provider = _alerting_ticker(datetime(2024, 1, 1, 6, 59, 59, tzinfo=timezone.utc), ["audnzd"])

    ticker.run(iterations=2, sleep=lambda _: None)

    assert "[test][SESSION_OPENED] London" not in provider.subjects
    assert provider.subjects == ["[test][SESSION_OVERLAP] Tokyo + London"]
