"""Session alerts: whitelisted payloads, deduplication and pluggable delivery (SMTP or log)."""

from __future__ import annotations

import json
import logging
import os
import smtplib
import ssl
import time
from dataclasses import dataclass
from email.message import EmailMessage
from enum import Enum
from typing import Any, Protocol

SECRET_PATTERNS = ("token", "password", "api_key", "authorization", "smtp_pass", "secret")
MAX_ALERT_BODY_LEN = 2000
DEFAULT_DEDUPE_SECONDS = 60
SMTP_RETRY_DELAY_SEC = 0.15


class AlertEvent(str, Enum):
    SESSION_OPENING_SOON = "SESSION_OPENING_SOON"
    SESSION_OPENED = "SESSION_OPENED"
    SESSION_CLOSED = "SESSION_CLOSED"
    SESSION_OVERLAP = "SESSION_OVERLAP"


ALERT_WHITELIST: dict[AlertEvent, tuple[str, ...]] = {
    AlertEvent.SESSION_OPENING_SOON: ("session", "opens_at_utc", "minutes_before", "pairs", "username"),
    AlertEvent.SESSION_OPENED: ("session", "closes_at_utc", "pairs", "username"),
    AlertEvent.SESSION_CLOSED: ("session", "opens_at_utc", "username"),
    AlertEvent.SESSION_OVERLAP: ("sessions", "time_utc", "username"),
}


class AlertProvider(Protocol):
    def send(self, *, event: AlertEvent, subject: str, body: str) -> None: ...


@dataclass(frozen=True)
class EmailConfig:
    host: str
    to_email: str
    from_email: str
    port: int = 587
    user: str | None = None
    password: str | None = None
    use_starttls: bool = True
    use_ssl: bool = False
    timeout_sec: float = 10.0


class EmailProvider:
    def __init__(self, config: EmailConfig, logger: logging.Logger | None = None) -> None:
        self.config = config
        self.logger = logger or logging.getLogger("session_tracker.alerts")

    def _open(self) -> smtplib.SMTP:
        cfg = self.config
        if cfg.use_ssl:
            return smtplib.SMTP_SSL(cfg.host, cfg.port, timeout=cfg.timeout_sec, context=ssl.create_default_context())
        server = smtplib.SMTP(cfg.host, cfg.port, timeout=cfg.timeout_sec)
        if cfg.use_starttls:
            server.starttls(context=ssl.create_default_context())
        return server

    def _deliver(self, msg: EmailMessage) -> None:
        with self._open() as server:
            if self.config.user and self.config.password:
                server.login(self.config.user, self.config.password)
            server.send_message(msg)

    def send(self, *, event: AlertEvent, subject: str, body: str) -> None:
        msg = EmailMessage()
        msg["From"] = self.config.from_email
        msg["To"] = self.config.to_email
        msg["Subject"] = subject
        msg.set_content(body)

        # one retry; failures are logged, never raised
        for attempt in (1, 2):
            try:
                self._deliver(msg)
                return
            except (OSError, smtplib.SMTPException) as exc:
                self.logger.warning("alert send failed event=%s attempt=%s err=%s", event.value, attempt, exc)
                if attempt == 1:
                    time.sleep(SMTP_RETRY_DELAY_SEC)


class LogProvider:
    """Writes alerts to the application log; used when no SMTP host is configured."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("session_tracker.alerts")

    def send(self, *, event: AlertEvent, subject: str, body: str) -> None:
        self.logger.info("%s %s", subject, body.replace("\n", " "))


def _lookup(settings: dict[str, Any], key: str, default: Any = None) -> Any:
    """Stored app setting first, then the environment."""
    value = settings.get(key)
    if value is None or value == "":
        value = os.getenv(key)
    return default if value is None or value == "" else value


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def load_email_config(settings: dict[str, Any] | None = None) -> EmailConfig | None:
    """Build SMTP config from stored settings and env; None when host or recipient is missing."""
    s = settings or {}
    host = str(_lookup(s, "SMTP_HOST", "")).strip()
    to_email = str(_lookup(s, "ALERT_EMAIL_TO", "")).strip()
    if not host or not to_email:
        return None
    user = _lookup(s, "SMTP_USER")
    password = _lookup(s, "SMTP_PASS")
    return EmailConfig(
        host=host,
        to_email=to_email,
        from_email=str(_lookup(s, "SMTP_FROM", user or "session-tracker@localhost")).strip(),
        port=int(_lookup(s, "SMTP_PORT", 587)),
        user=str(user) if user else None,
        password=str(password) if password else None,
        use_starttls=_as_bool(_lookup(s, "SMTP_USE_STARTTLS", True)),
        use_ssl=_as_bool(_lookup(s, "SMTP_USE_SSL", False)),
        timeout_sec=float(_lookup(s, "SMTP_TIMEOUT_SEC", 10)),
    )


def _sanitize(event: AlertEvent, payload: dict[str, Any] | None) -> dict[str, Any]:
    source = payload or {}
    return {key: source[key] for key in ALERT_WHITELIST[event] if source.get(key) is not None}


def _contains_secret(text: str) -> bool:
    lowered = text.lower()
    return any(pattern in lowered for pattern in SECRET_PATTERNS)


def _subject_core(clean: dict[str, Any]) -> str:
    if "session" in clean:
        return str(clean["session"])
    if "sessions" in clean:
        return " + ".join(str(name) for name in clean["sessions"])
    return "sessions"


class AlertService:
    def __init__(
        self,
        providers: list[AlertProvider],
        *,
        environment: str = "prod",
        dedupe_seconds: int = DEFAULT_DEDUPE_SECONDS,
        logger: logging.Logger | None = None,
        monotonic: Any = time.monotonic,
    ) -> None:
        self.providers = providers
        self.environment = environment
        self.dedupe_seconds = dedupe_seconds
        self.logger = logger or logging.getLogger("session_tracker.alerts")
        self._monotonic = monotonic
        self._last_sent: dict[str, float] = {}

    def _is_duplicate(self, fingerprint: str) -> bool:
        now = self._monotonic()
        self._last_sent = {key: ts for key, ts in self._last_sent.items() if now - ts < self.dedupe_seconds}
        if fingerprint in self._last_sent:
            return True
        self._last_sent[fingerprint] = now
        return False

    def _render(self, event: AlertEvent, clean: dict[str, Any]) -> tuple[str, str]:
        subject = f"[{self.environment}][{event.value}] {_subject_core(clean)}"
        body = json.dumps(clean, indent=2, sort_keys=True, default=str)
        if len(body) > MAX_ALERT_BODY_LEN:
            body = body[:MAX_ALERT_BODY_LEN] + "\n...<truncated>"
        return subject, body

    def send(self, event: AlertEvent, payload: dict[str, Any] | None = None) -> bool:
        """Deliver to every provider; False when deduplicated or dropped for secret-like content."""
        clean = _sanitize(event, payload)
        if self._is_duplicate(f"{event.value}:{json.dumps(clean, sort_keys=True, default=str)}"):
            return False

        subject, body = self._render(event, clean)
        if _contains_secret(subject) or _contains_secret(body):
            self.logger.error("alert dropped due to secret-like content event=%s", event.value)
            return False

        for provider in self.providers:
            try:
                provider.send(event=event, subject=subject, body=body)
            except Exception as exc:  # noqa: BLE001
                self.logger.warning("provider %s failed event=%s err=%s", type(provider).__name__, event.value, exc)
        return True


def build_alert_service(
    *,
    settings: dict[str, Any] | None = None,
    environment: str = "prod",
    dedupe_seconds: int = DEFAULT_DEDUPE_SECONDS,
) -> AlertService:
    email_config = load_email_config(settings=settings)
    provider: AlertProvider = EmailProvider(email_config) if email_config is not None else LogProvider()
    return AlertService([provider], environment=environment, dedupe_seconds=dedupe_seconds)
