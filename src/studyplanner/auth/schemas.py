"""Bodies accepted and returned by ``/api/v1/auth``."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field

NormalizedEmail = Annotated[EmailStr, AfterValidator(lambda value: value.strip().lower())]
Password = Annotated[str, Field(min_length=1, max_length=128)]


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: NormalizedEmail
    password: Password


class LoginRequest(BaseModel):
    email: NormalizedEmail
    password: Password


class GoogleLoginRequest(BaseModel):
    """``id_token`` is the credential returned by Google Identity Services."""

    id_token: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: NormalizedEmail


class VerifyEmailRequest(BaseModel):
    token: str


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: Password


class RefreshRequest(BaseModel):
    refresh_token: str


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    auth_method: str
    email_verified: bool
    avatar_url: str | None = None
    created_at: datetime | None = None
    last_login: datetime | None = None


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse
