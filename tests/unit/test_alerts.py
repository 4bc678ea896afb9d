from __future__ import annotations

from notifications.alerts import AlertEvent, AlertService, LogProvider, build_alert_service, load_email_config


class _CaptureProvider:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def send(self, *, event: AlertEvent, subject: str, body: str) -> None:
        self.messages.append((subject, body))


def test_alert_sanitization_drops_non_whitelisted_keys() -> None:
    provider = _CaptureProvider()
    svc = AlertService([provider], environment="prod")

    sent = svc.send(
        AlertEvent.SESSION_OPENING_SOON,
        {
            "session": "London",
            "opens_at_utc": "2024-01-01T07:00:00+00:00",
            "minutes_before": 15,
            "pairs": ["EURUSD"],
            "token": "top-secret",
            "password": "bad",
        },
    )

    assert sent is True
    assert len(provider.messages) == 1
    subject, body = provider.messages[0]
    assert subject == "[prod][SESSION_OPENING_SOON] London"
    assert "token" not in body.lower()
    assert "password" not in body.lower()


def test_alert_dedupe_and_truncation() -> None:
    provider = _CaptureProvider()
    svc = AlertService([provider], environment="prod", dedupe_seconds=60)

    payload = {"session": "Tokyo", "opens_at_utc": "2024-01-02T00:00:00+00:00", "pairs": ["USDJPY" + "X" * 4000]}
    assert svc.send(AlertEvent.SESSION_OPENING_SOON, payload) is True
    assert svc.send(AlertEvent.SESSION_OPENING_SOON, payload) is False

    _, body = provider.messages[0]
    assert "<truncated>" in body


def test_secret_like_values_are_dropped() -> None:
    provider = _CaptureProvider()
    svc = AlertService([provider])
    assert svc.send(AlertEvent.SESSION_CLOSED, {"session": "api_key leaked"}) is False
    assert provider.messages == []


def test_failing_provider_does_not_raise() -> None:
    class _Broken:
        def send(self, *, event: AlertEvent, subject: str, body: str) -> None:
            raise RuntimeError("smtp down")

    capture = _CaptureProvider()
    svc = AlertService([_Broken(), capture])
    assert svc.send(AlertEvent.SESSION_OVERLAP, {"sessions": ["London", "New York"]}) is True
    assert capture.messages[0][0].endswith("London + New York")


def test_build_without_smtp_falls_back_to_log_provider(monkeypatch) -> None:
    monkeypatch.delenv("SMTP_HOST", raising=False)
    svc = build_alert_service(environment="test")
    assert len(svc.providers) == 1
    assert isinstance(svc.providers[0], LogProvider)


def test_email_config_prefers_stored_settings_over_env(monkeypatch) -> None:
    monkeypatch.setenv("SMTP_HOST", "env-host")
    monkeypatch.setenv("SMTP_PORT", "2525")
    monkeypatch.delenv("ALERT_EMAIL_TO", raising=False)
    assert load_email_config({}) is None

    cfg = load_email_config({"SMTP_HOST": "db-host", "ALERT_EMAIL_TO": "ops@example.com", "SMTP_USE_SSL": "true"})
    assert cfg is not None
    assert (cfg.host, cfg.port, cfg.to_email) == ("db-host", 2525, "ops@example.com")
    assert cfg.use_ssl is True
    assert cfg.from_email == "session-tracker@localhost"


def test_dedupe_window_expires() -> None:
    ticks = iter([0.0, 30.0, 61.0])
    provider = _CaptureProvider()
    svc = AlertService([provider], dedupe_seconds=60, monotonic=lambda: next(ticks))
    payload = {"session": "Sydney", "opens_at_utc": "2024-01-01T21:00:00+00:00"}

    assert [svc.send(AlertEvent.SESSION_OPENING_SOON, payload) for _ in range(3)] == [True, False, True]


def test_expired_fingerprints_are_pruned() -> None:
    ticks = iter([0.0, 10.0, 100.0])
    svc = AlertService([_CaptureProvider()], dedupe_seconds=60, monotonic=lambda: next(ticks))

    svc.send(AlertEvent.SESSION_OPENING_SOON, {"session": "Tokyo"})
    svc.send(AlertEvent.SESSION_OPENING_SOON, {"session": "London"})
    assert len(svc._last_sent) == 2

    svc.send(AlertEvent.SESSION_OPENING_SOON, {"session": "Sydney"})
    assert list(svc._last_sent) == ['SESSION_OPENING_SOON:{"session": "Sydney"}']
