"""Cookie-based authentication: pbkdf2 password hashes and HS256 session tokens."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import secrets
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import APIRouter, HTTPException, Response, status
from pydantic import BaseModel

from config.settings import (
    ADMIN_BOOTSTRAP_PASS,
    ADMIN_BOOTSTRAP_USER,
    API_COOKIE_DOMAIN,
    API_COOKIE_NAME,
    API_COOKIE_SAMESITE,
    API_COOKIE_SECURE,
    API_JWT_ALG,
    API_JWT_EXPIRES_MIN,
    API_JWT_SECRET,
)
from storage.db import connect, init_db
from storage.users import UserExistsError, create_user, get_user, normalize_username

router = APIRouter(prefix="/auth", tags=["auth"])

ROLES = ("user", "admin")
MIN_PASSWORD_LEN = 8
PBKDF2_ITERATIONS = 120_000
_HASH_SCHEME = "pbkdf2_sha256"


class TokenError(ValueError):
    pass


class CredentialsRequest(BaseModel):
    username: str
    password: str


class UserResponse(BaseModel):
    username: str
    role: str


@dataclass(frozen=True)
class AuthenticatedUser:
    id: int
    username: str
    role: str


def _encode_segment(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _decode_segment(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


def _json_segment(value: dict[str, Any]) -> str:
    return _encode_segment(json.dumps(value, separators=(",", ":"), sort_keys=True).encode("utf-8"))


def _sign(signing_input: str) -> bytes:
    return hmac.new(API_JWT_SECRET.encode("utf-8"), signing_input.encode("ascii"), hashlib.sha256).digest()


def hash_password(password: str, *, iterations: int = PBKDF2_ITERATIONS) -> str:
    salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return "$".join((_HASH_SCHEME, str(iterations), _encode_segment(salt), _encode_segment(digest)))


def verify_password(password: str, password_hash: str) -> bool:
    parts = password_hash.split("$")
    if len(parts) != 4 or parts[0] != _HASH_SCHEME or not parts[1].isdigit():
        return False
    salt, expected = _decode_segment(parts[2]), _decode_segment(parts[3])
    actual = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, int(parts[1]))
    return hmac.compare_digest(actual, expected)


def create_jwt(*, username: str, role: str, now: datetime | None = None) -> str:
    if API_JWT_ALG != "HS256":
        raise ValueError(f"Unsupported API_JWT_ALG: {API_JWT_ALG}")
    issued = now or datetime.now(timezone.utc)
    claims = {
        "sub": username,
        "role": role,
        "iat": int(issued.timestamp()),
        "exp": int((issued + timedelta(minutes=API_JWT_EXPIRES_MIN)).timestamp()),
    }
    signing_input = f"{_json_segment({'alg': 'HS256', 'typ': 'JWT'})}.{_json_segment(claims)}"
    return f"{signing_input}.{_encode_segment(_sign(signing_input))}"


def decode_jwt(token: str, *, now: datetime | None = None) -> dict[str, Any]:
    """Verify signature and expiry; raises TokenError on any failure."""
    signing_input, _, signature = token.rpartition(".")
    if signing_input.count(".") != 1:
        raise TokenError("malformed token")
    try:
        valid = hmac.compare_digest(_decode_segment(signature), _sign(signing_input))
        claims = json.loads(_decode_segment(signing_input.split(".")[1]))
    except (ValueError, UnicodeError) as exc:
        raise TokenError("malformed token") from exc
    if not isinstance(claims, dict):
        raise TokenError("malformed token")
    if not valid:
        raise TokenError("bad signature")
    current = now or datetime.now(timezone.utc)
    if int(claims.get("exp", 0)) < int(current.timestamp()):
        raise TokenError("token expired")
    return claims


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def get_current_user_from_cookie(cookie_value: str | None, conn: sqlite3.Connection) -> AuthenticatedUser:
    if not cookie_value:
        raise _unauthorized("Authentication required")
    try:
        claims = decode_jwt(cookie_value)
    except TokenError as exc:
        raise _unauthorized(f"Invalid token: {exc}") from exc
    record = get_user(conn, str(claims.get("sub") or ""))
    if record is None:
        raise _unauthorized("User not found")
    return AuthenticatedUser(id=record.id, username=record.username, role=record.role)


def _cookie_options() -> dict[str, Any]:
    return {
        "httponly": True,
        "secure": API_COOKIE_SECURE,
        "samesite": API_COOKIE_SAMESITE,
        "domain": API_COOKIE_DOMAIN,
    }


def set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(key=API_COOKIE_NAME, value=token, max_age=API_JWT_EXPIRES_MIN * 60, **_cookie_options())


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(key=API_COOKIE_NAME, **_cookie_options())


def _issue(response: Response, username: str, role: str) -> UserResponse:
    set_auth_cookie(response, create_jwt(username=username, role=role))
    return UserResponse(username=username, role=role)


@router.post("/register", response_model=UserResponse)
def register(payload: CredentialsRequest, response: Response) -> UserResponse:
    username = normalize_username(payload.username)
    if not username:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username is required")
    if len(payload.password) < MIN_PASSWORD_LEN:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {MIN_PASSWORD_LEN} characters",
        )

    conn = connect()
    init_db(conn)
    try:
        create_user(conn, username=username, password_hash=hash_password(payload.password), role="user")
    except UserExistsError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already registered") from exc
    finally:
        conn.close()
    return _issue(response, username, "user")


@router.post("/login", response_model=UserResponse)
def login(payload: CredentialsRequest, response: Response) -> UserResponse:
    conn = connect()
    init_db(conn)
    try:
        record = get_user(conn, payload.username)
    finally:
        conn.close()

    if record is None or not verify_password(payload.password, record.password_hash):
        raise _unauthorized("Invalid credentials")
    return _issue(response, record.username, record.role)


@router.post("/logout")
def logout(response: Response) -> dict[str, bool]:
    clear_auth_cookie(response)
    return {"ok": True}


def ensure_user(conn: sqlite3.Connection, *, username: str, password: str, role: str) -> None:
    """Create the user unless it already exists."""
    if role not in ROLES:
        raise ValueError(f"Unsupported role: {role}")
    if get_user(conn, username) is None:
        create_user(conn, username=username, password_hash=hash_password(password), role=role)


def bootstrap_admin_from_env() -> None:
    if not ADMIN_BOOTSTRAP_USER or not ADMIN_BOOTSTRAP_PASS:
        return
    conn = connect()
    init_db(conn)
    try:
        ensure_user(conn, username=ADMIN_BOOTSTRAP_USER, password=ADMIN_BOOTSTRAP_PASS, role="admin")
    finally:
        conn.close()
