"""User profile business logic."""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from studyplanner.db.models import User
from studyplanner.users.schemas import PreferencesUpdate, SubjectIn

logger = structlog.get_logger()


def merge_settings(current: dict[str, Any] | None, update: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``update`` into a copy of ``current``."""
    merged = dict(current or {})
    for key, value in update.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_settings(merged[key], value)
        else:
            merged[key] = value
    return merged


async def update_profile(
    db: AsyncSession,
    user: User,
    name: str | None = None,
    avatar_url: str | None = None,
    preferences: PreferencesUpdate | None = None,
    subjects: list[SubjectIn] | None = None,
    settings: dict[str, Any] | None = None,
) -> User:
    """Update profile fields. Only provided values change."""
    if name is not None:
        user.name = name
    if avatar_url is not None:
        user.avatar_url = avatar_url
    if preferences is not None:
        for key, value in preferences.model_dump(exclude_none=True).items():
            setattr(user, key, value)
    if subjects is not None:
        user.subjects = [s.model_dump() for s in subjects]
    if settings is not None:
        user.settings = merge_settings(user.settings, settings)

    await db.flush()
    logger.info("profile_updated", user_id=user.id)
    return user
