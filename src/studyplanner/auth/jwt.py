"""Signed session tokens.

Tokens are RS256 JWTs with ``sub`` (user id as a string), ``email``, and a
``type`` claim of ``access`` or ``refresh``. A token is only accepted where
its own type is expected.
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import jwt

from studyplanner.clock import utcnow
from studyplanner.config import get_settings

TokenType = Literal["access", "refresh"]


@lru_cache(maxsize=1)
def _keys() -> tuple[str, str]:
    settings = get_settings()
    return (
        Path(settings.jwt_private_key_path).read_text(),
        Path(settings.jwt_public_key_path).read_text(),
    )


def reset_keys() -> None:
    """Forget the loaded key pair so the next call re-reads the configured paths."""
    _keys.cache_clear()


def _lifetime(token_type: TokenType) -> timedelta:
    settings = get_settings()
    if token_type == "access":
        return timedelta(minutes=settings.jwt_access_token_expire_minutes)
    return timedelta(days=settings.jwt_refresh_token_expire_days)


def issue_token(user_id: int, email: str, token_type: TokenType) -> str:
    settings = get_settings()
    issued = utcnow()
    claims: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "type": token_type,
        "iss": settings.jwt_issuer,
        "iat": issued,
        "exp": issued + _lifetime(token_type),
    }
    return jwt.encode(claims, _keys()[0], algorithm=settings.jwt_algorithm)


def create_access_token(user_id: int, email: str) -> str:
    return issue_token(user_id, email, "access")


def create_refresh_token(user_id: int, email: str) -> str:
    return issue_token(user_id, email, "refresh")


def verify_token(token: str, expected_type: TokenType = "access") -> dict[str, Any]:
    """Decode ``token`` and check its signature, issuer, expiry, and type.

    Every failure surfaces as ``jwt.InvalidTokenError`` with a readable message.
    """
    settings = get_settings()
    try:
        claims: dict[str, Any] = jwt.decode(
            token,
            _keys()[1],
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            options={"require": ["sub", "exp", "type"]},
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    if claims["type"] != expected_type:
        msg = f"Expected a {expected_type} token"
        raise jwt.InvalidTokenError(msg)
    return claims
