"""User profile router: /api/v1/users/me."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from studyplanner.auth.dependencies import get_current_user
from studyplanner.database import get_session
from studyplanner.db.models import User
from studyplanner.users.schemas import PreferencesResponse, ProfileResponse, ProfileUpdateRequest
from studyplanner.users.service import update_profile

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


def profile_response(user: User) -> ProfileResponse:
    return ProfileResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        auth_method=user.auth_method,
        email_verified=user.email_verified,
        avatar_url=user.avatar_url,
        preferences=PreferencesResponse(
            daily_study_hours=user.daily_study_hours,
            preferred_study_time=user.preferred_study_time,
            session_minutes=user.session_minutes,
            break_minutes=user.break_minutes,
        ),
        subjects=user.subjects or [],
        settings=user.settings or {},
        created_at=user.created_at,
        last_login=user.last_login,
    )


@router.get("/me", response_model=ProfileResponse)
async def get_profile(
    user: User = Depends(get_current_user),
) -> ProfileResponse:
    """Get own profile, preferences, and settings."""
    return profile_response(user)


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ProfileResponse:
    """Update profile. Preferences and settings are merged into the stored ones."""
    user = await update_profile(
        db,
        user,
        name=body.name,
        avatar_url=body.avatar_url,
        preferences=body.preferences,
        subjects=body.subjects,
        settings=body.settings,
    )
    await db.commit()
    return profile_response(user)
