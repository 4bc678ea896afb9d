from __future__ import annotations

import sqlite3

from fastapi import APIRouter, Depends, HTTPException, status

from api.auth import AuthenticatedUser
from api.deps import get_db, require_user
from config.settings import SELECTION_CAP
from storage.selection import (
    SelectionLimitError,
    UnknownPairError,
    add_pair,
    clear_selection,
    load_selection,
    remove_pair,
    toggle_pair,
)

router = APIRouter(prefix="/selection", tags=["selection"])


def _payload(pairs: list[str]) -> dict[str, object]:
    return {"pairs": pairs, "count": len(pairs), "cap": SELECTION_CAP, "can_add": len(pairs) < SELECTION_CAP}


@router.get("")
def get_selection(conn: sqlite3.Connection = Depends(get_db), user: AuthenticatedUser = Depends(require_user)) -> dict[str, object]:
    return _payload(load_selection(conn, user.username))


@router.post("/{pair_id}")
def post_selection(
    pair_id: str,
    conn: sqlite3.Connection = Depends(get_db),
    user: AuthenticatedUser = Depends(require_user),
) -> dict[str, object]:
    try:
        pairs = add_pair(conn, user.username, pair_id)
    except UnknownPairError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown pair") from exc
    except SelectionLimitError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _payload(pairs)


@router.post("/{pair_id}/toggle")
def post_toggle(
    pair_id: str,
    conn: sqlite3.Connection = Depends(get_db),
    user: AuthenticatedUser = Depends(require_user),
) -> dict[str, object]:
    before = load_selection(conn, user.username)
    try:
        pairs = toggle_pair(conn, user.username, pair_id)
    except UnknownPairError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown pair") from exc
    return {**_payload(pairs), "changed": pairs != before}


@router.delete("/{pair_id}")
def delete_selection_pair(
    pair_id: str,
    conn: sqlite3.Connection = Depends(get_db),
    user: AuthenticatedUser = Depends(require_user),
) -> dict[str, object]:
    try:
        pairs = remove_pair(conn, user.username, pair_id)
    except UnknownPairError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown pair") from exc
    return _payload(pairs)


@router.delete("")
def delete_selection(conn: sqlite3.Connection = Depends(get_db), user: AuthenticatedUser = Depends(require_user)) -> dict[str, object]:
    clear_selection(conn, user.username)
    return _payload([])
