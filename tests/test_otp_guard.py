"""Tests for the OtpGuard — throttling, lockouts and verification."""

from __future__ import annotations

import pytest

from auth_service.errors import (
    CacheUnavailableError,
    ExternalServiceError,
    OtpExpiredError,
    OtpLockedError,
    OtpMismatchError,
    OtpRateLimitedError,
)
from auth_service.otp.guard import (
    ATTEMPTS_EXHAUSTED_MESSAGE,
    COOLDOWN_MESSAGE,
    LOCKED_MESSAGE,
    OTP_EMAIL_SUBJECT,
    SPAM_LOCKED_MESSAGE,
    OtpGuard,
    generate_otp_code,
)
from auth_service.otp.state import (
    OtpStatus,
    attempts_key,
    cooldown_key,
    lock_key,
    otp_key,
    request_count_key,
    spam_lock_key,
)
from conftest import UnavailableCache, sent_otp

EMAIL = "jane@example.com"
TEMPLATE = "user-activation-mail"


@pytest.fixture
def guard(cache, email_service) -> OtpGuard:
    return OtpGuard(cache, email_service, code_factory=lambda: "1234")


# ──────────────────────────────────────────────────────────
# check_restrictions
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_fresh_email_is_allowed(guard):
    await guard.check_restrictions(EMAIL)
    await guard.check_restrictions("someone.else@example.com")


@pytest.mark.asyncio
async def test_cooldown_after_issue_until_60_seconds(guard, clock):
    await guard.issue(EMAIL, "Jane", TEMPLATE)

    with pytest.raises(OtpRateLimitedError) as exc_info:
        await guard.check_restrictions(EMAIL)
    assert exc_info.value.message == COOLDOWN_MESSAGE

    clock.advance(59)
    with pytest.raises(OtpRateLimitedError):
        await guard.check_restrictions(EMAIL)

    clock.advance(1)
    await guard.check_restrictions(EMAIL)


@pytest.mark.asyncio
async def test_restriction_priority(guard, cache):
    await cache.set(cooldown_key(EMAIL), "true", 60)
    await cache.set(spam_lock_key(EMAIL), "locked", 3600)
    await cache.set(lock_key(EMAIL), "locked", 1800)

    with pytest.raises(OtpLockedError) as exc_info:
        await guard.check_restrictions(EMAIL)
    assert exc_info.value.message == LOCKED_MESSAGE

    await cache.delete(lock_key(EMAIL))
    with pytest.raises(OtpRateLimitedError) as exc_info:
        await guard.check_restrictions(EMAIL)
    assert exc_info.value.message == SPAM_LOCKED_MESSAGE


@pytest.mark.asyncio
async def test_check_restrictions_does_not_write(guard, cache):
    await guard.check_restrictions(EMAIL)
    assert cache._entries == {}


# ──────────────────────────────────────────────────────────
# track_request
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_third_request_in_window_sets_spam_lock(guard, cache):
    await guard.track_request(EMAIL)
    assert await cache.get(request_count_key(EMAIL)) == "1"

    await guard.track_request(EMAIL)
    assert await cache.get(request_count_key(EMAIL)) == "2"

    with pytest.raises(OtpRateLimitedError) as exc_info:
        await guard.track_request(EMAIL)
    assert exc_info.value.message == SPAM_LOCKED_MESSAGE
    assert spam_lock_key(EMAIL) in cache
    assert (await guard.status(EMAIL)).status is OtpStatus.SPAM_LOCKED


@pytest.mark.asyncio
async def test_request_window_rolls_with_each_request(guard, clock):
    await guard.track_request(EMAIL)
    clock.advance(3000)
    await guard.track_request(EMAIL)

    # Past the first request's original expiry, but the TTL was refreshed.
    clock.advance(3000)
    with pytest.raises(OtpRateLimitedError):
        await guard.track_request(EMAIL)


@pytest.mark.asyncio
async def test_request_count_expires_after_quiet_hour(guard, clock):
    await guard.track_request(EMAIL)
    await guard.track_request(EMAIL)
    clock.advance(3600)

    await guard.track_request(EMAIL)
    assert (await guard.status(EMAIL)).request_count == 1


@pytest.mark.asyncio
async def test_spam_lock_lifts_after_an_hour(guard, clock):
    for _ in range(2):
        await guard.track_request(EMAIL)
    with pytest.raises(OtpRateLimitedError):
        await guard.track_request(EMAIL)

    clock.advance(3600)
    await guard.check_restrictions(EMAIL)


# ──────────────────────────────────────────────────────────
# issue
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_issue_sends_and_stores_code(guard, cache, email_service):
    await guard.issue(EMAIL, "Jane", TEMPLATE)

    email_service.send.assert_awaited_once_with(
        EMAIL, OTP_EMAIL_SUBJECT, TEMPLATE, {"name": "Jane", "otp": "1234"}
    )
    assert await cache.get(otp_key(EMAIL)) == "1234"
    assert cooldown_key(EMAIL) in cache
    assert (await guard.status(EMAIL)).status is OtpStatus.PENDING


@pytest.mark.asyncio
async def test_new_issue_overwrites_pending_code(cache, email_service):
    codes = iter(["1111", "2222"])
    guard = OtpGuard(cache, email_service, code_factory=lambda: next(codes))

    await guard.issue(EMAIL, "Jane", TEMPLATE)
    await guard.issue(EMAIL, "Jane", TEMPLATE)

    assert await cache.get(otp_key(EMAIL)) == "2222"
    with pytest.raises(OtpMismatchError):
        await guard.verify(EMAIL, "1111")


@pytest.mark.asyncio
async def test_issued_code_expires_after_five_minutes(guard, clock):
    await guard.issue(EMAIL, "Jane", TEMPLATE)
    clock.advance(300)

    with pytest.raises(OtpExpiredError):
        await guard.verify(EMAIL, "1234")


@pytest.mark.asyncio
async def test_failed_dispatch_stores_nothing(guard, cache, email_service):
    email_service.send.side_effect = ExternalServiceError("Failed to send email")

    with pytest.raises(ExternalServiceError):
        await guard.issue(EMAIL, "Jane", TEMPLATE)

    assert otp_key(EMAIL) not in cache
    assert cooldown_key(EMAIL) not in cache


def test_generated_codes_are_four_digits():
    for _ in range(500):
        code = generate_otp_code()
        assert len(code) == 4
        assert 1000 <= int(code) <= 9999


# ──────────────────────────────────────────────────────────
# verify
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_verify_without_issue_is_expired(guard):
    with pytest.raises(OtpExpiredError) as exc_info:
        await guard.verify(EMAIL, "1234")
    assert exc_info.value.message == "Invalid or expired OTP!"


@pytest.mark.asyncio
async def test_three_wrong_codes_lock_the_email(guard, cache):
    await guard.issue(EMAIL, "Jane", TEMPLATE)

    with pytest.raises(OtpMismatchError) as exc_info:
        await guard.verify(EMAIL, "4321")
    assert "2 attempts remaining" in exc_info.value.message
    assert exc_info.value.attempts_remaining == 2

    with pytest.raises(OtpMismatchError) as exc_info:
        await guard.verify(EMAIL, "4321")
    assert "1 attempt remaining" in exc_info.value.message
    assert exc_info.value.attempts_remaining == 1

    with pytest.raises(OtpLockedError) as exc_info:
        await guard.verify(EMAIL, "4321")
    assert exc_info.value.message == ATTEMPTS_EXHAUSTED_MESSAGE

    assert lock_key(EMAIL) in cache
    assert otp_key(EMAIL) not in cache
    assert attempts_key(EMAIL) not in cache

    # The correct code no longer helps.
    with pytest.raises(OtpLockedError):
        await guard.verify(EMAIL, "1234")
    with pytest.raises(OtpLockedError):
        await guard.check_restrictions(EMAIL)


@pytest.mark.asyncio
async def test_attempt_lock_lifts_after_30_minutes(guard, clock):
    await guard.issue(EMAIL, "Jane", TEMPLATE)
    for _ in range(2):
        with pytest.raises(OtpMismatchError):
            await guard.verify(EMAIL, "0000")
    with pytest.raises(OtpLockedError):
        await guard.verify(EMAIL, "0000")

    clock.advance(1799)
    with pytest.raises(OtpLockedError):
        await guard.check_restrictions(EMAIL)

    clock.advance(1)
    await guard.check_restrictions(EMAIL)
    with pytest.raises(OtpExpiredError):
        await guard.verify(EMAIL, "1234")


@pytest.mark.asyncio
async def test_correct_code_clears_state_and_is_single_use(guard, cache):
    await guard.issue(EMAIL, "Jane", TEMPLATE)
    with pytest.raises(OtpMismatchError):
        await guard.verify(EMAIL, "9999")

    await guard.verify(EMAIL, "1234")

    assert otp_key(EMAIL) not in cache
    assert attempts_key(EMAIL) not in cache
    with pytest.raises(OtpExpiredError):
        await guard.verify(EMAIL, "1234")


@pytest.mark.asyncio
async def test_spam_lock_blocks_verification(guard, cache):
    await guard.issue(EMAIL, "Jane", TEMPLATE)
    await cache.set(spam_lock_key(EMAIL), "locked", 3600)

    with pytest.raises(OtpRateLimitedError):
        await guard.verify(EMAIL, "1234")
    assert await cache.get(otp_key(EMAIL)) == "1234"


@pytest.mark.asyncio
async def test_issue_then_verify_round_trip(cache, email_service):
    guard = OtpGuard(cache, email_service)

    await guard.issue(EMAIL, "Jane", TEMPLATE)
    code = sent_otp(email_service)

    await guard.verify(EMAIL, code)
    with pytest.raises(OtpExpiredError):
        await guard.verify(EMAIL, code)


# ──────────────────────────────────────────────────────────
# request_otp
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_request_otp_enforces_cooldown_then_spam_lock(guard, clock, email_service):
    await guard.request_otp(EMAIL, "Jane", TEMPLATE)

    with pytest.raises(OtpRateLimitedError) as exc_info:
        await guard.request_otp(EMAIL, "Jane", TEMPLATE)
    assert exc_info.value.message == COOLDOWN_MESSAGE

    clock.advance(61)
    await guard.request_otp(EMAIL, "Jane", TEMPLATE)

    clock.advance(61)
    with pytest.raises(OtpRateLimitedError) as exc_info:
        await guard.request_otp(EMAIL, "Jane", TEMPLATE)
    assert exc_info.value.message == SPAM_LOCKED_MESSAGE

    assert email_service.send.await_count == 2


@pytest.mark.asyncio
async def test_malformed_submission_counts_as_mismatch(guard):
    await guard.issue(EMAIL, "Jane", TEMPLATE)

    with pytest.raises(OtpMismatchError):
        await guard.verify(EMAIL, "１２３４")
    with pytest.raises(OtpMismatchError):
        await guard.verify(EMAIL, "12345")
    await guard.verify(EMAIL, "1234")


# ──────────────────────────────────────────────────────────
# Cache outages
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_cache_outage_propagates(email_service):
    guard = OtpGuard(UnavailableCache(), email_service, code_factory=lambda: "1234")

    with pytest.raises(CacheUnavailableError):
        await guard.verify(EMAIL, "1234")
    with pytest.raises(CacheUnavailableError):
        await guard.request_otp(EMAIL, "Jane", TEMPLATE)
    email_service.send.assert_not_called()
