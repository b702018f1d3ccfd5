"""
Accounts: email/password and Google sign-in, plus the one-time tokens behind
email verification and password reset.

One-time tokens are random URL-safe strings. Only their SHA-256 digest is
stored, and issuing a new token voids the user's earlier unused ones.
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import timedelta
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select, update

from studyplanner.auth.password import (
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)
from studyplanner.clock import as_utc, utcnow
from studyplanner.config import get_settings
from studyplanner.db.models import EmailVerificationToken, PasswordResetToken, User
from studyplanner.gamification.service import new_gamification

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from studyplanner.auth.google import GoogleIdentity

logger = structlog.get_logger()

OneTimeToken = EmailVerificationToken | PasswordResetToken


def _digest(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode()).hexdigest()


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    return await db.get(User, user_id)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Case-insensitive lookup."""
    stmt = select(User).where(func.lower(User.email) == email.strip().lower())
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_user_by_google_id(db: AsyncSession, google_id: str) -> User | None:
    stmt = select(User).where(User.google_id == google_id)
    return (await db.execute(stmt)).scalar_one_or_none()


async def _add_user(db: AsyncSession, user: User) -> User:
    """Insert the user together with an empty gamification record."""
    db.add(user)
    await db.flush()
    db.add(new_gamification(user.id))
    await db.flush()
    return user


async def register_user(db: AsyncSession, name: str, email: str, password: str) -> User:
    """
    Create an email/password account.

    Raises PasswordStrengthError for a password outside the length policy and
    ValueError when the email is taken.
    """
    validate_password_strength(password)
    if await get_user_by_email(db, email) is not None:
        msg = "User already exists with this email"
        raise ValueError(msg)

    now = utcnow()
    user = await _add_user(
        db,
        User(
            name=name.strip(),
            email=email.strip().lower(),
            password_hash=hash_password(password),
            email_verified=False,
            created_at=now,
            last_login=now,
        ),
    )
    logger.info("user_created", user_id=user.id, method="email")
    return user


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User:
    """Check credentials and stamp ``last_login``. Raises ValueError on mismatch.

    Google-only accounts have no password hash and never match.
    """
    user = await get_user_by_email(db, email)
    if user is None or not user.password_hash or not verify_password(password, user.password_hash):
        msg = "Invalid credentials"
        raise ValueError(msg)

    if check_needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        logger.info("password_rehashed", user_id=user.id)
    user.last_login = utcnow()
    await db.flush()
    return user


async def login_with_google(db: AsyncSession, identity: GoogleIdentity) -> tuple[User, bool]:
    """
    Find or create the user for a verified Google identity.

    An email account signing in with Google for the first time is linked to
    the Google id. Returns ``(user, created)``.
    """
    user = await get_user_by_google_id(db, identity.google_id)
    if user is None:
        user = await get_user_by_email(db, identity.email)
        if user is not None:
            user.google_id = identity.google_id
            user.avatar_url = user.avatar_url or identity.avatar_url
            logger.info("google_account_linked", user_id=user.id)

    now = utcnow()
    if user is not None:
        user.email_verified = True
        user.last_login = now
        await db.flush()
        return user, False

    user = await _add_user(
        db,
        User(
            name=identity.name,
            email=identity.email,
            google_id=identity.google_id,
            avatar_url=identity.avatar_url,
            email_verified=True,
            created_at=now,
            last_login=now,
        ),
    )
    logger.info("user_created", user_id=user.id, method="google")
    return user, True


async def _issue(db: AsyncSession, model: type[OneTimeToken], user_id: int, lifetime: timedelta) -> str:
    raw_token = secrets.token_urlsafe(48)
    now = utcnow()
    await db.execute(
        update(model).where(model.user_id == user_id, model.used_at.is_(None)).values(used_at=now)
    )
    db.add(
        model(
            user_id=user_id,
            token_hash=_digest(raw_token),
            created_at=now,
            expires_at=now + lifetime,
        )
    )
    await db.flush()
    return raw_token


async def _redeem(db: AsyncSession, model: type[OneTimeToken], raw_token: str, label: str) -> OneTimeToken:
    """Mark a live token used and return it. Raises ValueError otherwise."""
    stmt = select(model).where(model.token_hash == _digest(raw_token))
    token = (await db.execute(stmt)).scalar_one_or_none()
    now = utcnow()
    if token is None:
        msg = f"Invalid or expired {label} token"
        raise ValueError(msg)
    if token.used_at is not None:
        msg = "Token has already been used"
        raise ValueError(msg)
    if as_utc(token.expires_at) < now:
        msg = f"{label.capitalize()} token has expired"
        raise ValueError(msg)
    token.used_at = now
    return token


async def create_verification_token(db: AsyncSession, user_id: int) -> str:
    """Return a raw email verification token for the user."""
    lifetime = timedelta(hours=get_settings().email_verification_token_ttl_hours)
    return await _issue(db, EmailVerificationToken, user_id, lifetime)


async def verify_email_token(db: AsyncSession, raw_token: str) -> int:
    """Consume a verification token, mark its user verified, return the user id."""
    token = await _redeem(db, EmailVerificationToken, raw_token, "verification")
    await db.execute(update(User).where(User.id == token.user_id).values(email_verified=True))
    await db.flush()
    return token.user_id


async def create_reset_token(db: AsyncSession, user_id: int) -> str:
    lifetime = timedelta(minutes=get_settings().password_reset_token_ttl_minutes)
    return await _issue(db, PasswordResetToken, user_id, lifetime)


async def reset_password(db: AsyncSession, raw_token: str, new_password: str) -> User:
    """
    Consume a reset token and set the new password.

    The password policy is checked first, so a weak password does not burn
    the token.
    """
    validate_password_strength(new_password)
    token = await _redeem(db, PasswordResetToken, raw_token, "reset")
    user = await get_user_by_id(db, token.user_id)
    if user is None:
        msg = "Invalid or expired reset token"
        raise ValueError(msg)

    user.password_hash = hash_password(new_password)
    await db.flush()
    logger.info("password_reset", user_id=user.id)
    return user
