"""Auth endpoints — OTP-verified registration, login and password reset."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request, Response, status

from auth_service.api.dependencies import Cache, CurrentAccount, Guard, Session
from auth_service.api.schemas import (
    AccountInfo,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ResetPasswordRequest,
    SellerRegistrationRequest,
    UserRegistrationRequest,
    VerifyAccountRequest,
    VerifyForgotPasswordRequest,
    VerifySellerRequest,
)
from auth_service.database.repository import SellerRepository, UserRepository
from auth_service.errors import AuthError, ForbiddenError, ValidationError
from auth_service.models.user import Seller, User
from auth_service.services.security import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    consume_password_reset,
    create_access_token,
    decode_refresh_token,
    grant_password_reset,
    hash_password,
    issue_session,
    set_auth_cookie,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


def _account_info(account: User | Seller) -> AccountInfo:
    role = "seller" if isinstance(account, Seller) else "user"
    return AccountInfo(id=account.id, name=account.name, email=account.email, role=role)


# ──────────────────────────────────────────────────────────────
# Users
# ──────────────────────────────────────────────────────────────
@router.post("/user-registration", response_model=MessageResponse)
async def user_registration(
    body: UserRegistrationRequest, session: Session, guard: Guard
) -> MessageResponse:
    """Send an activation OTP to a not-yet-registered email."""
    if await UserRepository(session).find_by_email(body.email):
        raise ValidationError("User with this email already exists")

    await guard.request_otp(body.email, body.name, "user-activation-mail")
    return MessageResponse(
        message="OTP sent to your email. Please verify to complete registration."
    )


@router.post(
    "/verify-user", response_model=MessageResponse, status_code=status.HTTP_201_CREATED
)
async def verify_user(
    body: VerifyAccountRequest, session: Session, guard: Guard
) -> MessageResponse:
    """Check the activation OTP and create the user."""
    users = UserRepository(session)
    if await users.find_by_email(body.email):
        raise ValidationError("User already exists with this email!")

    await guard.verify(body.email, body.otp)
    user = await users.create(body.name, body.email, hash_password(body.password))
    logger.info("User %s registered (id=%s)", user.email, user.id)
    return MessageResponse(message="User registered successfully")


@router.post("/login-user", response_model=LoginResponse)
async def login_user(body: LoginRequest, response: Response, session: Session) -> LoginResponse:
    user = await UserRepository(session).find_by_email(body.email)
    if user is None:
        raise AuthError("User doesn't exist! Check your email or register first.")
    if not verify_password(body.password, user.password):
        raise AuthError("Invalid email or password")

    issue_session(response, user.id, "user")
    return LoginResponse(message="Login successful", user=_account_info(user))


@router.post("/refresh-token-user", response_model=MessageResponse)
async def refresh_token(request: Request, response: Response, session: Session) -> MessageResponse:
    """Exchange the refresh-token cookie for a new access-token cookie."""
    token = request.cookies.get(REFRESH_COOKIE)
    if not token:
        raise ValidationError("Unauthorized! No refresh token.")

    payload = decode_refresh_token(token)
    if payload.role == "seller":
        account = await SellerRepository(session).find_by_id(payload.account_id)
    else:
        account = await UserRepository(session).find_by_id(payload.account_id)
    if account is None:
        raise AuthError("Forbidden! User/Seller not found!")

    set_auth_cookie(response, ACCESS_COOKIE, create_access_token(account.id, payload.role))
    return MessageResponse(message="Access token refreshed")


@router.get("/logged-in-user", response_model=AccountInfo)
async def logged_in_user(account: CurrentAccount) -> AccountInfo:
    return _account_info(account)


# ──────────────────────────────────────────────────────────────
# Password reset
# ──────────────────────────────────────────────────────────────
@router.post("/forgot-password-user", response_model=MessageResponse)
async def forgot_password_user(
    body: ForgotPasswordRequest, session: Session, guard: Guard
) -> MessageResponse:
    user = await UserRepository(session).find_by_email(body.email)
    if user is None:
        raise ValidationError("User not found!")

    await guard.request_otp(user.email, user.name, "forgot-password-user-mail")
    return MessageResponse(message="OTP sent to email. Please verify your account.")


@router.post("/verify-forgot-password-user", response_model=MessageResponse)
async def verify_forgot_password_user(
    body: VerifyForgotPasswordRequest, guard: Guard, cache: Cache
) -> MessageResponse:
    await guard.verify(body.email, body.otp)
    await grant_password_reset(cache, body.email)
    return MessageResponse(message="OTP verified. You can now reset your password.")


@router.post("/reset-password-user", response_model=MessageResponse)
async def reset_password_user(
    body: ResetPasswordRequest, session: Session, cache: Cache
) -> MessageResponse:
    users = UserRepository(session)
    user = await users.find_by_email(body.email)
    if user is None:
        raise ValidationError("User not found!")

    if verify_password(body.new_password, user.password):
        raise ValidationError("New password cannot be the same as the old password!")

    if not await consume_password_reset(cache, body.email):
        raise ForbiddenError("Verify the OTP sent to your email before resetting your password.")

    await users.update_password(user, hash_password(body.new_password))
    logger.info("Password reset for %s", user.email)
    return MessageResponse(message="Password reset successfully!")


# ──────────────────────────────────────────────────────────────
# Sellers
# ──────────────────────────────────────────────────────────────
@router.post("/seller-registration", response_model=MessageResponse)
async def seller_registration(
    body: SellerRegistrationRequest, session: Session, guard: Guard
) -> MessageResponse:
    if await SellerRepository(session).find_by_email(body.email):
        raise ValidationError("Seller already exists with this email!")

    await guard.request_otp(body.email, body.name, "seller-activation-mail")
    return MessageResponse(message="OTP sent to email. Please verify your account.")


@router.post(
    "/verify-seller", response_model=MessageResponse, status_code=status.HTTP_201_CREATED
)
async def verify_seller(
    body: VerifySellerRequest, session: Session, guard: Guard
) -> MessageResponse:
    sellers = SellerRepository(session)
    if await sellers.find_by_email(body.email):
        raise ValidationError("Seller already exists with this email!")

    await guard.verify(body.email, body.otp)
    seller = await sellers.create(
        name=body.name,
        email=body.email,
        password_hash=hash_password(body.password),
        phone_number=body.phone_number,
        country=body.country,
    )
    logger.info("Seller %s registered (id=%s)", seller.email, seller.id)
    return MessageResponse(message="Seller registered successfully")


@router.post("/login-seller", response_model=LoginResponse)
async def login_seller(body: LoginRequest, response: Response, session: Session) -> LoginResponse:
    seller = await SellerRepository(session).find_by_email(body.email)
    if seller is None:
        raise AuthError("Seller doesn't exist! Check your email or register first.")
    if not verify_password(body.password, seller.password):
        raise AuthError("Invalid email or password")

    issue_session(response, seller.id, "seller")
    return LoginResponse(message="Login successful", user=_account_info(seller))
