from __future__ import annotations

import json

from storage.db import connect, get_app_settings, init_db, ping, put_app_settings


def test_init_db_creates_expected_tables(tmp_path):
    db_path = tmp_path / "tables.sqlite"
    conn = connect(db_path)
    try:
        init_db(conn)
        init_db(conn)
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
        columns = {row[1] for row in conn.execute("PRAGMA table_info(notification_settings)").fetchall()}
    finally:
        conn.close()

    table_names = {row[0] for row in rows}
    assert {"users", "pair_selections", "notification_settings", "app_settings", "audit_log"}.issubset(table_names)
    assert "display_timezone" in columns


def test_app_settings_round_trip_writes_audit(tmp_path):
    conn = connect(tmp_path / "settings.sqlite")
    try:
        init_db(conn)
        assert ping(conn) is True
        updated = put_app_settings(conn, {"SMTP_HOST": "smtp.example.com", "SMTP_PORT": 2525}, updated_by="admin")
        values = get_app_settings(conn, keys=["SMTP_HOST"])
        audit = conn.execute("SELECT actor, action, details_json FROM audit_log ORDER BY id DESC LIMIT 1").fetchone()
    finally:
        conn.close()

    assert updated == ["SMTP_HOST", "SMTP_PORT"]
    assert values == {"SMTP_HOST": "smtp.example.com"}
    assert audit[0] == "admin"
    assert audit[1] == "SETTINGS_UPDATED"
    assert json.loads(audit[2]) == {"keys": ["SMTP_HOST", "SMTP_PORT"]}
