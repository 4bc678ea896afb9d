from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Ensure the directory that contains `config/`, `filters/`, etc. is importable.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture()
def at_utc():
    """Build an aware UTC instant on a fixed Monday."""

    def _at(hour: int, minute: int = 0, second: int = 0, *, day: int = 1) -> datetime:
        return datetime(2024, 1, day, hour, minute, second, tzinfo=timezone.utc)

    return _at


@pytest.fixture()
def ten_pairs() -> list[str]:
    return ["eurusd", "gbpusd", "usdjpy", "usdchf", "audusd", "usdcad", "nzdusd", "eurjpy", "gbpjpy", "eurgbp"]
