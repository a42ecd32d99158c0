"""OTP guard — throttles OTP issuance and checks submitted codes.

Three escalating throttles protect every email address:

* **cooldown** — one request per minute;
* **spam lock** — a third request inside the rolling hour locks requests
  for an hour;
* **attempt lock** — a third wrong code locks the address for 30 minutes.

Each denial is raised as a typed ``AppError`` subclass so the HTTP layer
can translate it directly.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable

from auth_service.cache.store import CacheStore
from auth_service.errors import (
    OtpExpiredError,
    OtpLockedError,
    OtpMismatchError,
    OtpRateLimitedError,
)
from auth_service.otp.state import OtpRecord, OtpStateStore
from auth_service.services.email_service import EmailService

logger = logging.getLogger(__name__)

MAX_REQUESTS_PER_WINDOW = 2
MAX_FAILED_ATTEMPTS = 2

OTP_EMAIL_SUBJECT = "Verify Your Email"

LOCKED_MESSAGE = "Account locked due to multiple failed attempts! Try again after 30 minutes."
SPAM_LOCKED_MESSAGE = "Too many OTP requests! Please wait 1 hour before requesting again."
COOLDOWN_MESSAGE = "Please wait 1 minute before requesting a new OTP!"
ATTEMPTS_EXHAUSTED_MESSAGE = "Too many failed attempts. Your account is locked for 30 minutes!"


def generate_otp_code() -> str:
    """Return a random four-digit code in the range 1000–9999."""
    return str(secrets.randbelow(9000) + 1000)


class OtpGuard:
    """Gates OTP issuance and verification for a single cache namespace."""

    def __init__(
        self,
        cache: CacheStore,
        email_service: EmailService,
        code_factory: Callable[[], str] = generate_otp_code,
    ) -> None:
        self._state = OtpStateStore(cache)
        self._email_service = email_service
        self._code_factory = code_factory

    async def check_restrictions(self, email: str) -> None:
        """Raise if a lock or the cooldown currently blocks a new OTP."""
        record = await self._state.load(email)
        self._ensure_unlocked(record)
        if record.cooldown:
            raise OtpRateLimitedError(COOLDOWN_MESSAGE)

    async def track_request(self, email: str) -> None:
        """Count this request; the third one inside the window spam-locks."""
        record = await self._state.load(email)
        if record.request_count >= MAX_REQUESTS_PER_WINDOW:
            await self._state.spam_lock(email)
            logger.warning("Spam lock set for %s after %d requests", email, record.request_count)
            raise OtpRateLimitedError(SPAM_LOCKED_MESSAGE)
        await self._state.save_request_count(email, record.request_count + 1)

    async def issue(self, email: str, name: str, template: str) -> None:
        """Generate a code, mail it, then store it and start the cooldown.

        Must only be called once ``check_restrictions`` and
        ``track_request`` have both passed.
        """
        code = self._code_factory()
        await self._email_service.send(
            email,
            OTP_EMAIL_SUBJECT,
            template,
            {"name": name, "otp": code},
        )
        await self._state.save_code(email, code)
        await self._state.start_cooldown(email)
        logger.info("OTP issued for %s (%s)", email, template)

    async def request_otp(self, email: str, name: str, template: str) -> None:
        """Run the full restriction → tracking → issuance sequence."""
        await self.check_restrictions(email)
        await self.track_request(email)
        await self.issue(email, name, template)

    async def verify(self, email: str, submitted_code: str) -> None:
        """Consume the pending code if *submitted_code* matches it."""
        record = await self._state.load(email)
        self._ensure_unlocked(record)

        if record.code is None:
            raise OtpExpiredError()

        if not secrets.compare_digest(submitted_code.encode(), record.code.encode()):
            if record.attempts >= MAX_FAILED_ATTEMPTS:
                await self._state.lock(email)
                logger.warning("Attempt lock set for %s", email)
                raise OtpLockedError(ATTEMPTS_EXHAUSTED_MESSAGE)
            await self._state.save_attempts(email, record.attempts + 1)
            raise OtpMismatchError(MAX_FAILED_ATTEMPTS - record.attempts)

        await self._state.clear_code(email)
        logger.info("OTP verified for %s", email)

    async def status(self, email: str) -> OtpRecord:
        """Return the current state snapshot (for diagnostics and tests)."""
        return await self._state.load(email)

    @staticmethod
    def _ensure_unlocked(record: OtpRecord) -> None:
        if record.locked:
            raise OtpLockedError(LOCKED_MESSAGE)
        if record.spam_locked:
            raise OtpRateLimitedError(SPAM_LOCKED_MESSAGE)
