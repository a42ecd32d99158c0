"""Password hashing, JWT issuance and auth cookies."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Literal

import bcrypt
import jwt
from fastapi import Response

from auth_service.cache.store import CacheStore
from auth_service.config import settings
from auth_service.errors import AuthError

logger = logging.getLogger(__name__)

Role = Literal["user", "seller"]

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"
COOKIE_MAX_AGE_SECONDS = 7 * 24 * 60 * 60

PASSWORD_RESET_TTL_SECONDS = 300

# bcrypt only looks at the first 72 bytes of input
_BCRYPT_MAX_BYTES = 72


# ── Passwords ─────────────────────────────────────────────


def hash_password(password: str) -> str:
    pwd_bytes = password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(pwd_bytes, bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    pwd_bytes = password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
    return bcrypt.checkpw(pwd_bytes, password_hash.encode("utf-8"))


# ── JWT ───────────────────────────────────────────────────


@dataclass
class TokenPayload:
    account_id: int
    role: Role


def _encode(account_id: int, role: Role, secret: str, lifetime: timedelta) -> str:
    now = datetime.now(UTC)
    payload = {"id": account_id, "role": role, "iat": now, "exp": now + lifetime}
    return jwt.encode(payload, secret, algorithm=settings.jwt_algorithm)


def _decode(token: str, secret: str) -> TokenPayload:
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthError("Session expired. Please log in again.") from None
    except jwt.PyJWTError:
        raise AuthError("Invalid token") from None

    account_id = payload.get("id")
    role = payload.get("role")
    if not isinstance(account_id, int) or role not in ("user", "seller"):
        raise AuthError("Invalid token payload")
    return TokenPayload(account_id=account_id, role=role)


def create_access_token(account_id: int, role: Role) -> str:
    return _encode(
        account_id,
        role,
        settings.jwt_access_token_secret,
        timedelta(minutes=settings.access_token_expiry_minutes),
    )


def create_refresh_token(account_id: int, role: Role) -> str:
    return _encode(
        account_id,
        role,
        settings.jwt_refresh_token_secret,
        timedelta(days=settings.refresh_token_expiry_days),
    )


def decode_access_token(token: str) -> TokenPayload:
    return _decode(token, settings.jwt_access_token_secret)


def decode_refresh_token(token: str) -> TokenPayload:
    return _decode(token, settings.jwt_refresh_token_secret)


# ── Cookies ───────────────────────────────────────────────


def set_auth_cookie(response: Response, name: str, value: str) -> None:
    response.set_cookie(
        key=name,
        value=value,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="none" if settings.cookie_secure else "lax",
        max_age=COOKIE_MAX_AGE_SECONDS,
    )


def issue_session(response: Response, account_id: int, role: Role) -> None:
    """Set fresh access and refresh cookies on *response*."""
    set_auth_cookie(response, REFRESH_COOKIE, create_refresh_token(account_id, role))
    set_auth_cookie(response, ACCESS_COOKIE, create_access_token(account_id, role))


# ── Password reset grant ──────────────────────────────────


def _reset_key(email: str) -> str:
    return f"password_reset:{email}"


async def grant_password_reset(cache: CacheStore, email: str) -> None:
    """Record that *email* proved mailbox control for a password reset."""
    await cache.set(_reset_key(email), "true", PASSWORD_RESET_TTL_SECONDS)


async def consume_password_reset(cache: CacheStore, email: str) -> bool:
    """Return whether a reset grant existed, removing it either way."""
    granted = await cache.get(_reset_key(email)) is not None
    await cache.delete(_reset_key(email))
    return granted
