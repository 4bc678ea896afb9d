from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from config.pairs import FOREX_PAIRS, CurrencyPair, find_pair
from config.sessions import SESSIONS

router = APIRouter(prefix="/pairs", tags=["pairs"])


def serialize_pair(pair: CurrencyPair) -> dict[str, object]:
    # sessions listed in registry order
    return {
        "id": pair.id,
        "symbol": pair.symbol,
        "name": pair.name,
        "sessions": [session.name.value for session in SESSIONS if session.name in pair.sessions],
    }


@router.get("")
def list_pairs() -> list[dict[str, object]]:
    return [serialize_pair(pair) for pair in FOREX_PAIRS]


@router.get("/{pair_id}")
def get_pair_detail(pair_id: str) -> dict[str, object]:
    pair = find_pair(pair_id)
    if pair is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown pair")
    return serialize_pair(pair)
