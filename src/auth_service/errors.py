"""Application error hierarchy.

Every error raised deliberately by the service derives from ``AppError``
and carries the HTTP status the error middleware should answer with.
"""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base class for operational, user-facing errors."""

    def __init__(
        self,
        message: str,
        status_code: int,
        is_operational: bool = True,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.is_operational = is_operational
        self.details = details


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, 404)


class ValidationError(AppError):
    def __init__(
        self,
        message: str = "Invalid request data! Validation failed...",
        details: Any = None,
    ) -> None:
        super().__init__(message, 400, details=details)


class AuthError(AppError):
    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message, 401)


class ForbiddenError(AppError):
    def __init__(self, message: str = "Access forbidden") -> None:
        super().__init__(message, 403)


class DatabaseError(AppError):
    def __init__(self, message: str = "Database operation failed") -> None:
        super().__init__(message, 500)


class RateLimitError(AppError):
    def __init__(self, message: str = "Too many requests, please try again later") -> None:
        super().__init__(message, 429)


class ExternalServiceError(AppError):
    def __init__(self, message: str = "External service error") -> None:
        super().__init__(message, 502)


class RequestTimeoutError(AppError):
    def __init__(self, message: str = "Request timed out") -> None:
        super().__init__(message, 504)


# ── OTP guard outcomes ───────────────────────────────────


class OtpRateLimitedError(RateLimitError):
    """Cooldown or spam lock is active for the email."""


class OtpLockedError(ForbiddenError):
    """Attempt lock is active for the email."""


class OtpExpiredError(ValidationError):
    """No pending OTP exists for the email."""

    def __init__(self, message: str = "Invalid or expired OTP!") -> None:
        super().__init__(message)


class OtpMismatchError(ValidationError):
    """Submitted code is wrong; attempts remain before the lock."""

    def __init__(self, attempts_remaining: int) -> None:
        noun = "attempt" if attempts_remaining == 1 else "attempts"
        super().__init__(f"Incorrect OTP! {attempts_remaining} {noun} remaining.")
        self.attempts_remaining = attempts_remaining


class CacheUnavailableError(ExternalServiceError):
    def __init__(self, message: str = "Cache service unavailable") -> None:
        super().__init__(message)
