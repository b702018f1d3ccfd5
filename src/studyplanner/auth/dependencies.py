"""Request authentication for HTTP routes and the WebSocket endpoint."""

from __future__ import annotations

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from studyplanner.auth.jwt import verify_token
from studyplanner.auth.service import get_user_by_id
from studyplanner.database import get_session
from studyplanner.db.models import User

_bearer = HTTPBearer()


def user_id_from_access_token(token: str) -> int:
    """Return the user id carried by a valid access token.

    Raises ``jwt.InvalidTokenError`` for anything else, refresh tokens included.
    """
    claims = verify_token(token, expected_type="access")
    try:
        return int(claims["sub"])
    except ValueError:
        msg = "Malformed subject claim"
        raise jwt.InvalidTokenError(msg) from None


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User:
    try:
        user_id = user_id_from_access_token(credentials.credentials)
    except jwt.InvalidTokenError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    user = await get_user_by_id(db, user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    return user
