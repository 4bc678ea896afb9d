"""Tradable instruments and the sessions in which each is considered active."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from config.sessions import SessionName

_TOKYO = SessionName.TOKYO
_LONDON = SessionName.LONDON
_NEW_YORK = SessionName.NEW_YORK
_SYDNEY = SessionName.SYDNEY


@dataclass(frozen=True)
class CurrencyPair:
    id: str
    symbol: str
    name: str
    sessions: frozenset[SessionName]


def _pair(symbol: str, name: str, *sessions: SessionName) -> CurrencyPair:
    return CurrencyPair(id=symbol.lower(), symbol=symbol, name=name, sessions=frozenset(sessions))


FOREX_PAIRS: Final[tuple[CurrencyPair, ...]] = (
    _pair("EURUSD", "Euro / US Dollar", _LONDON, _NEW_YORK),
    _pair("GBPUSD", "British Pound / US Dollar", _LONDON, _NEW_YORK),
    _pair("USDJPY", "US Dollar / Japanese Yen", _TOKYO, _NEW_YORK),
    _pair("USDCHF", "US Dollar / Swiss Franc", _LONDON, _NEW_YORK),
    _pair("AUDUSD", "Australian Dollar / US Dollar", _SYDNEY, _NEW_YORK),
    _pair("USDCAD", "US Dollar / Canadian Dollar", _NEW_YORK),
    _pair("NZDUSD", "New Zealand Dollar / US Dollar", _SYDNEY, _NEW_YORK),
    _pair("EURJPY", "Euro / Japanese Yen", _TOKYO, _LONDON),
    _pair("GBPJPY", "British Pound / Japanese Yen", _TOKYO, _LONDON),
    _pair("EURGBP", "Euro / British Pound", _LONDON),
    _pair("AUDJPY", "Australian Dollar / Japanese Yen", _TOKYO, _SYDNEY),
    _pair("EURAUD", "Euro / Australian Dollar", _LONDON, _SYDNEY),
    _pair("CHFJPY", "Swiss Franc / Japanese Yen", _TOKYO, _LONDON),
    _pair("GBPAUD", "British Pound / Australian Dollar", _LONDON, _SYDNEY),
    _pair("GBPCHF", "British Pound / Swiss Franc", _LONDON),
    _pair("AUDCAD", "Australian Dollar / Canadian Dollar", _SYDNEY, _NEW_YORK),
    _pair("AUDCHF", "Australian Dollar / Swiss Franc", _SYDNEY, _LONDON),
    _pair("AUDNZD", "Australian Dollar / New Zealand Dollar", _SYDNEY),
    _pair("CADCHF", "Canadian Dollar / Swiss Franc", _NEW_YORK, _LONDON),
    _pair("CADJPY", "Canadian Dollar / Japanese Yen", _TOKYO, _NEW_YORK),
    _pair("EURCHF", "Euro / Swiss Franc", _LONDON),
    _pair("EURNZD", "Euro / New Zealand Dollar", _LONDON, _SYDNEY),
    _pair("GBPCAD", "British Pound / Canadian Dollar", _LONDON, _NEW_YORK),
    _pair("GBPNZD", "British Pound / New Zealand Dollar", _LONDON, _SYDNEY),
    _pair("NZDCAD", "New Zealand Dollar / Canadian Dollar", _SYDNEY, _NEW_YORK),
    _pair("NZDCHF", "New Zealand Dollar / Swiss Franc", _SYDNEY, _LONDON),
    _pair("NZDJPY", "New Zealand Dollar / Japanese Yen", _TOKYO, _SYDNEY),
    _pair("XAUUSD", "Gold / US Dollar", _NEW_YORK),
    _pair("XAGUSD", "Silver / US Dollar", _NEW_YORK),
    _pair("WTIUSD", "WTI Oil / US Dollar", _NEW_YORK),
)

PAIRS_BY_ID: Final[dict[str, CurrencyPair]] = {pair.id: pair for pair in FOREX_PAIRS}


def normalize_pair_id(value: str) -> str:
    """Map an id or symbol ("eurusd", "EURUSD", "EUR_USD") to the registry id form."""
    return value.strip().replace("_", "").replace("/", "").lower()


def find_pair(value: str) -> CurrencyPair | None:
    return PAIRS_BY_ID.get(normalize_pair_id(value))


def get_pair(value: str) -> CurrencyPair:
    pair = find_pair(value)
    if pair is None:
        raise KeyError(value)
    return pair


def pairs_for_session(name: SessionName) -> list[CurrencyPair]:
    return [pair for pair in FOREX_PAIRS if name in pair.sessions]
