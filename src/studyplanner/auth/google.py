"""Google ID token verification via the tokeninfo endpoint."""

from __future__ import annotations

from dataclasses import dataclass

import httpx
import structlog

from studyplanner.config import get_settings

logger = structlog.get_logger()


class GoogleAuthError(ValueError):
    """Raised when a Google ID token cannot be verified."""


@dataclass(frozen=True)
class GoogleIdentity:
    google_id: str
    email: str
    name: str
    avatar_url: str | None = None


async def verify_google_token(id_token: str) -> GoogleIdentity:
    """Validate ``id_token`` with Google and return the identity it asserts."""
    settings = get_settings()
    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(settings.google_tokeninfo_url, params={"id_token": id_token})
    except httpx.HTTPError as e:
        logger.warning("google_tokeninfo_unreachable", error=str(e))
        msg = "Google sign-in is unavailable"
        raise GoogleAuthError(msg) from e

    if response.status_code != 200:
        msg = "Invalid Google token"
        raise GoogleAuthError(msg)

    claims = response.json()
    if settings.google_client_id and claims.get("aud") != settings.google_client_id:
        msg = "Google token was issued for another client"
        raise GoogleAuthError(msg)
    if not claims.get("sub") or not claims.get("email"):
        msg = "Google token is missing required claims"
        raise GoogleAuthError(msg)

    return GoogleIdentity(
        google_id=claims["sub"],
        email=claims["email"].lower(),
        name=claims.get("name") or claims["email"].split("@")[0],
        avatar_url=claims.get("picture"),
    )
