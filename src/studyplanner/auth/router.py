"""Authentication endpoints under /api/v1/auth."""

from __future__ import annotations

from typing import Any

import jwt as pyjwt
import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from studyplanner.auth import service
from studyplanner.auth.dependencies import get_current_user
from studyplanner.auth.google import GoogleAuthError, verify_google_token
from studyplanner.auth.jwt import create_access_token, create_refresh_token, verify_token
from studyplanner.auth.password import PasswordStrengthError
from studyplanner.auth.schemas import (
    ForgotPasswordRequest,
    GoogleLoginRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    UserResponse,
    VerifyEmailRequest,
)
from studyplanner.config import get_settings
from studyplanner.database import get_session
from studyplanner.db.models import User
from studyplanner.email.service import get_email_service

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


def user_response(user: User) -> UserResponse:
    return UserResponse.model_validate(user)


def _token_pair(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.id, user.email),
        refresh_token=create_refresh_token(user.id, user.email),
        expires_in=get_settings().jwt_access_token_expire_minutes * 60,
        user=user_response(user),
    )


def _frontend_link(path: str, token: str) -> str:
    return f"{get_settings().frontend_base_url}/{path}?token={token}"


async def _mail(user: User, template: str, **context: Any) -> bool:  # noqa: ANN401
    """Send a templated email. Failures are logged and reported as False."""
    try:
        return await get_email_service().send_template(to=user.email, template_name=template, context=context)
    except Exception:
        logger.exception("auth_email_failed", user_id=user.id, template=template)
        return False


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_session)) -> TokenResponse:
    """Create an account and send the welcome email with its verification link."""
    try:
        user = await service.register_user(db, body.name, body.email, body.password)
    except PasswordStrengthError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc

    token = await service.create_verification_token(db, user.id)
    await db.commit()
    await _mail(user, "welcome", name=user.name, verify_url=_frontend_link("verify-email", token))
    return _token_pair(user)


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_session)) -> TokenResponse:
    try:
        user = await service.authenticate_user(db, body.email, body.password)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    await db.commit()
    return _token_pair(user)


@router.post("/google", response_model=TokenResponse)
async def google_login(body: GoogleLoginRequest, db: AsyncSession = Depends(get_session)) -> TokenResponse:
    """Sign in with a Google ID token, creating or linking the account."""
    try:
        identity = await verify_google_token(body.id_token)
    except GoogleAuthError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    user, created = await service.login_with_google(db, identity)
    await db.commit()
    logger.info("google_login", user_id=user.id, created=created)
    return _token_pair(user)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, db: AsyncSession = Depends(get_session)) -> TokenResponse:
    """Trade a refresh token for a new pair."""
    try:
        claims = verify_token(body.refresh_token, expected_type="refresh")
    except pyjwt.InvalidTokenError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    user = await service.get_user_by_id(db, int(claims["sub"]))
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    return _token_pair(user)


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)) -> UserResponse:
    return user_response(user)


@router.post("/verify-email")
async def verify_email(body: VerifyEmailRequest, db: AsyncSession = Depends(get_session)) -> dict[str, str]:
    try:
        await service.verify_email_token(db, body.token)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    await db.commit()
    return {"status": "email_verified"}


@router.post("/resend-verification")
async def resend_verification(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    """Mail a new verification link; earlier links stop working."""
    if user.email_verified:
        raise HTTPException(status_code=400, detail="Email is already verified")

    token = await service.create_verification_token(db, user.id)
    await db.commit()
    if not await _mail(user, "verify_email", verify_url=_frontend_link("verify-email", token)):
        raise HTTPException(status_code=502, detail="Failed to send verification email")
    return {"status": "verification_sent"}


@router.post("/forgot-password")
async def forgot_password(body: ForgotPasswordRequest, db: AsyncSession = Depends(get_session)) -> dict[str, str]:
    """Mail a reset link. The answer is the same whether or not the email is registered."""
    user = await service.get_user_by_email(db, body.email)
    if user is not None:
        token = await service.create_reset_token(db, user.id)
        await db.commit()
        await _mail(user, "password_reset", reset_url=_frontend_link("reset-password", token))
    return {"status": "If that email exists, a reset link has been sent."}


@router.post("/reset-password")
async def reset_password(body: ResetPasswordRequest, db: AsyncSession = Depends(get_session)) -> dict[str, str]:
    try:
        await service.reset_password(db, body.token, body.new_password)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    await db.commit()
    return {"status": "password_reset_complete"}
