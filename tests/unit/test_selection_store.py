from __future__ import annotations

import pytest

from config.settings import REMINDER_LEAD_MINUTES
from storage.db import connect, init_db
from storage.selection import (
    NotificationSettings,
    SelectionLimitError,
    UnknownPairError,
    add_pair,
    clear_selection,
    load_notification_settings,
    load_selection,
    remove_pair,
    save_notification_settings,
    toggle_pair,
)


@pytest.fixture()
def conn(tmp_path):
    connection = connect(tmp_path / "selection.sqlite")
    init_db(connection)
    yield connection
    connection.close()


def test_add_keeps_insertion_order_and_normalises_ids(conn) -> None:
    add_pair(conn, "alice", "GBPUSD")
    add_pair(conn, "alice", "eur_usd")
    assert add_pair(conn, "alice", "EURUSD") == ["gbpusd", "eurusd"]
    assert load_selection(conn, "alice") == ["gbpusd", "eurusd"]
    assert load_selection(conn, "bob") == []


def test_add_beyond_cap_raises(conn, ten_pairs) -> None:
    for pair_id in ten_pairs:
        add_pair(conn, "alice", pair_id)
    with pytest.raises(SelectionLimitError):
        add_pair(conn, "alice", "xauusd")
    assert len(load_selection(conn, "alice")) == 10


def test_toggle_at_cap_leaves_selection_unchanged(conn, ten_pairs) -> None:
    for pair_id in ten_pairs:
        add_pair(conn, "alice", pair_id)
    assert toggle_pair(conn, "alice", "xauusd") == ten_pairs
    assert toggle_pair(conn, "alice", "eurusd") == ten_pairs[1:]
    assert toggle_pair(conn, "alice", "xauusd")[-1] == "xauusd"


def test_unknown_pair_raises_key_error(conn) -> None:
    with pytest.raises(UnknownPairError):
        add_pair(conn, "alice", "nope")
    with pytest.raises(KeyError):
        remove_pair(conn, "alice", "nope")


def test_remove_and_clear_write_audit_rows(conn) -> None:
    add_pair(conn, "alice", "eurusd")
    add_pair(conn, "alice", "usdjpy")
    assert remove_pair(conn, "alice", "eurusd") == ["usdjpy"]
    clear_selection(conn, "alice")
    assert load_selection(conn, "alice") == []

    actions = [row[0] for row in conn.execute("SELECT action FROM audit_log WHERE actor = 'alice' ORDER BY id").fetchall()]
    assert actions == ["PAIR_SELECTED", "PAIR_SELECTED", "PAIR_DESELECTED", "SELECTION_CLEARED"]


def test_notification_settings_default_and_save(conn) -> None:
    defaults = load_notification_settings(conn, "alice")
    assert defaults == NotificationSettings(enabled=False, minutes_before=REMINDER_LEAD_MINUTES)

    save_notification_settings(conn, "alice", NotificationSettings(enabled=True, minutes_before=30, display_timezone="Asia/Tokyo"))
    assert load_notification_settings(conn, "alice") == NotificationSettings(True, 30, "Asia/Tokyo")
