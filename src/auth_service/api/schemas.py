"""Request / response models for the auth API."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, EmailStr, Field

NonEmptyStr = Annotated[str, Field(min_length=1)]
OtpCode = Annotated[str, Field(pattern=r"^\d{4}$")]


# ── Requests ─────────────────────────────────────────────

class UserRegistrationRequest(BaseModel):
    name: NonEmptyStr
    email: EmailStr
    password: NonEmptyStr


class SellerRegistrationRequest(UserRegistrationRequest):
    phone_number: NonEmptyStr
    country: NonEmptyStr


class VerifyAccountRequest(BaseModel):
    email: EmailStr
    otp: OtpCode
    password: NonEmptyStr
    name: NonEmptyStr


class VerifySellerRequest(VerifyAccountRequest):
    phone_number: NonEmptyStr
    country: NonEmptyStr


class LoginRequest(BaseModel):
    email: EmailStr
    password: NonEmptyStr


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class VerifyForgotPasswordRequest(BaseModel):
    email: EmailStr
    otp: OtpCode


class ResetPasswordRequest(BaseModel):
    email: EmailStr
    new_password: NonEmptyStr


# ── Responses ────────────────────────────────────────────

class MessageResponse(BaseModel):
    success: bool = True
    message: str


class AccountInfo(BaseModel):
    id: int
    name: str
    email: str
    role: str


class LoginResponse(MessageResponse):
    user: AccountInfo
