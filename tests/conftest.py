"""Shared test fixtures: fake clock, in-memory cache and a mocked mailer."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from auth_service.cache.store import CacheStore, MemoryCache
from auth_service.errors import CacheUnavailableError
from auth_service.services.email_service import EmailService


class FakeClock:
    """Manually advanced clock for simulating TTL expiry."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class UnavailableCache(CacheStore):
    """Cache whose every call fails as if the server were unreachable."""

    async def get(self, key):
        raise CacheUnavailableError()

    async def get_many(self, *keys):
        raise CacheUnavailableError()

    async def set(self, key, value, ttl_seconds):
        raise CacheUnavailableError()

    async def delete(self, *keys):
        raise CacheUnavailableError()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> MemoryCache:
    return MemoryCache(clock=clock)


@pytest.fixture
def email_service():
    """Mocked email service — never actually sends emails."""
    svc = EmailService()
    svc.send = AsyncMock()
    return svc


def sent_otp(email_service) -> str:
    """Return the code passed to the most recent ``send`` call."""
    return email_service.send.call_args.args[3]["otp"]
