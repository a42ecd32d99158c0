"""FastAPI dependencies — shared collaborators and the auth check."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from auth_service.cache.store import CacheStore
from auth_service.database.engine import get_session
from auth_service.database.repository import SellerRepository, UserRepository
from auth_service.errors import AuthError, ForbiddenError
from auth_service.models.user import Seller, User
from auth_service.otp.guard import OtpGuard
from auth_service.services.email_service import EmailService
from auth_service.services.security import ACCESS_COOKIE, decode_access_token

logger = logging.getLogger(__name__)


def get_cache(request: Request) -> CacheStore:
    """The cache opened by the application lifespan."""
    return request.app.state.cache


def get_email_service() -> EmailService:
    return EmailService()


def get_otp_guard(
    cache: Annotated[CacheStore, Depends(get_cache)],
    email_service: Annotated[EmailService, Depends(get_email_service)],
) -> OtpGuard:
    return OtpGuard(cache, email_service)


async def get_current_account(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> User | Seller:
    """Resolve the caller from the access-token cookie or bearer header."""
    token = request.cookies.get(ACCESS_COOKIE)
    if not token:
        header = request.headers.get("Authorization", "")
        scheme, _, credentials = header.partition(" ")
        if scheme.lower() == "bearer" and credentials:
            token = credentials
    if not token:
        raise AuthError("Unauthorized! No token provided")

    payload = decode_access_token(token)

    account: User | Seller | None
    if payload.role == "seller":
        account = await SellerRepository(session).find_by_id(payload.account_id)
    else:
        account = await UserRepository(session).find_by_id(payload.account_id)

    if account is None:
        logger.info("Token for missing %s %s", payload.role, payload.account_id)
        raise ForbiddenError("Forbidden! User/Seller not found!")
    return account


Session = Annotated[AsyncSession, Depends(get_session)]
Cache = Annotated[CacheStore, Depends(get_cache)]
Guard = Annotated[OtpGuard, Depends(get_otp_guard)]
CurrentAccount = Annotated[User | Seller, Depends(get_current_account)]
