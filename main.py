"""Console session tracker: refreshes session status every tick and sends reminders."""

from __future__ import annotations

import argparse
import logging
import os
from datetime import timedelta
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from config.pairs import normalize_pair_id
from config.settings import (
    LOG_FILE_PATH,
    REMINDER_LEAD_MINUTES,
    REMINDERS_ENABLED,
    TICK_INTERVAL_SEC,
    validate_settings,
)
from notifications.alerting import get_alert_service_for_db
from notifications.reminders import ReminderDispatcher
from runtime.ticker import SessionTicker
from storage.db import connect, init_db
from storage.selection import load_notification_settings, load_selection
from storage.users import normalize_username


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Console plus a daily (UTC midnight) rotating log file; idempotent."""
    logger = logging.getLogger("session_tracker")
    logger.setLevel(level)
    logger.propagate = False
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))

    Path(LOG_FILE_PATH).parent.mkdir(parents=True, exist_ok=True)
    file_handler = TimedRotatingFileHandler(
        LOG_FILE_PATH,
        when="midnight",
        backupCount=int(os.getenv("LOG_RETENTION_DAYS", "7")),
        encoding="utf-8",
        utc=True,
    )
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s,%(levelname)s,%(name)s,%(message)s", datefmt="%Y-%m-%dT%H:%M:%SZ")
    )

    for handler in (console_handler, file_handler):
        handler.setLevel(level)
        logger.addHandler(handler)
    return logger


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Track forex session windows for selected pairs.")
    parser.add_argument("--user", help="load the pair selection stored for this user")
    parser.add_argument("--pairs", default="", help="comma separated pair ids, used when --user is not given")
    parser.add_argument("--iterations", type=int, default=None, help="stop after N ticks")
    parser.add_argument("--interval", type=float, default=TICK_INTERVAL_SEC)
    parser.add_argument("--relevant-only", action="store_true", help="hide sessions with no selected pair")
    parser.add_argument("--no-reminders", action="store_true")
    return parser.parse_args(argv)


def build_ticker(args: argparse.Namespace, logger: logging.Logger) -> SessionTicker:
    username = normalize_username(args.user) if args.user else None
    conn = connect()
    init_db(conn)
    try:
        lead_minutes = REMINDER_LEAD_MINUTES
        reminders_on = REMINDERS_ENABLED and not args.no_reminders
        if username:
            prefs = load_notification_settings(conn, username)
            lead_minutes = prefs.minutes_before
            reminders_on = reminders_on and prefs.enabled
        dispatcher = None
        if reminders_on:
            lead = timedelta(minutes=lead_minutes)
            alerts = get_alert_service_for_db(conn, dedupe_seconds=int(lead.total_seconds()) + 60)
            dispatcher = ReminderDispatcher(alerts, lead=lead)
    finally:
        conn.close()

    if username:

        def source() -> list[str]:
            snapshot_conn = connect()
            try:
                return load_selection(snapshot_conn, username)
            finally:
                snapshot_conn.close()
    else:
        static = [normalize_pair_id(pair) for pair in args.pairs.split(",") if pair.strip()]

        def source() -> list[str]:
            return list(static)

    logger.info(
        "tracker configured user=%s reminders=%s relevant_only=%s",
        username or "-",
        dispatcher is not None,
        args.relevant_only,
    )
    return SessionTicker(
        source,
        dispatcher=dispatcher,
        relevant_only=args.relevant_only,
        username=username,
        logger=logger.getChild("ticker"),
    )


def run(argv: list[str] | None = None) -> None:
    """Run the refresh loop."""
    args = _parse_args(argv)
    logger = setup_logging()
    validate_settings()

    ticker = build_ticker(args, logger)
    logger.info("Session tracker started. interval=%.1fs", args.interval)
    try:
        ticker.run(iterations=args.iterations, interval_sec=args.interval)
    except KeyboardInterrupt:
        logger.info("Session tracker stopped.")


if __name__ == "__main__":
    run()
