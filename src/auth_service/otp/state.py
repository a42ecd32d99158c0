"""Explicit per-email OTP state, persisted as self-expiring cache keys.

Key layout (all keyed by email)::

    otp:<email>                pending code            300s
    otp_cooldown:<email>       request spacing flag     60s
    otp_request_count:<email>  requests in window     3600s
    otp_spam_lock:<email>      request lock           3600s
    otp_attempts:<email>       failed verifications    300s
    otp_lock:<email>           attempt lock           1800s
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from auth_service.cache.store import CacheStore

OTP_TTL_SECONDS = 300
COOLDOWN_TTL_SECONDS = 60
REQUEST_WINDOW_SECONDS = 3600
SPAM_LOCK_TTL_SECONDS = 3600
ATTEMPTS_TTL_SECONDS = 300
LOCK_TTL_SECONDS = 1800

_LOCKED = "locked"
_FLAG = "true"


class OtpStatus(str, Enum):
    NONE = "none"
    PENDING = "pending"
    LOCKED = "locked"
    SPAM_LOCKED = "spam_locked"


@dataclass
class OtpRecord:
    """Snapshot of everything the guard knows about one email."""

    email: str
    code: str | None = None
    attempts: int = 0
    request_count: int = 0
    cooldown: bool = False
    spam_locked: bool = False
    locked: bool = False

    @property
    def status(self) -> OtpStatus:
        if self.locked:
            return OtpStatus.LOCKED
        if self.spam_locked:
            return OtpStatus.SPAM_LOCKED
        if self.code is not None:
            return OtpStatus.PENDING
        return OtpStatus.NONE


def otp_key(email: str) -> str:
    return f"otp:{email}"


def cooldown_key(email: str) -> str:
    return f"otp_cooldown:{email}"


def request_count_key(email: str) -> str:
    return f"otp_request_count:{email}"


def spam_lock_key(email: str) -> str:
    return f"otp_spam_lock:{email}"


def attempts_key(email: str) -> str:
    return f"otp_attempts:{email}"


def lock_key(email: str) -> str:
    return f"otp_lock:{email}"


class OtpStateStore:
    """Loads ``OtpRecord`` snapshots and applies one write per transition."""

    def __init__(self, cache: CacheStore) -> None:
        self._cache = cache

    async def load(self, email: str) -> OtpRecord:
        code, attempts, request_count, cooldown, spam_locked, locked = await self._cache.get_many(
            otp_key(email),
            attempts_key(email),
            request_count_key(email),
            cooldown_key(email),
            spam_lock_key(email),
            lock_key(email),
        )
        return OtpRecord(
            email=email,
            code=code,
            attempts=int(attempts or 0),
            request_count=int(request_count or 0),
            cooldown=cooldown is not None,
            spam_locked=spam_locked is not None,
            locked=locked is not None,
        )

    async def save_code(self, email: str, code: str) -> None:
        await self._cache.set(otp_key(email), code, OTP_TTL_SECONDS)

    async def start_cooldown(self, email: str) -> None:
        await self._cache.set(cooldown_key(email), _FLAG, COOLDOWN_TTL_SECONDS)

    async def save_request_count(self, email: str, count: int) -> None:
        # Rewriting refreshes the TTL, so the window rolls with each request.
        await self._cache.set(request_count_key(email), str(count), REQUEST_WINDOW_SECONDS)

    async def spam_lock(self, email: str) -> None:
        await self._cache.set(spam_lock_key(email), _LOCKED, SPAM_LOCK_TTL_SECONDS)

    async def save_attempts(self, email: str, attempts: int) -> None:
        await self._cache.set(attempts_key(email), str(attempts), ATTEMPTS_TTL_SECONDS)

    async def lock(self, email: str) -> None:
        await self._cache.set(lock_key(email), _LOCKED, LOCK_TTL_SECONDS)
        await self.clear_code(email)

    async def clear_code(self, email: str) -> None:
        await self._cache.delete(otp_key(email), attempts_key(email))
