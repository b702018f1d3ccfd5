"""Request/response schemas for the user profile endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

StudyTime = Literal["morning", "afternoon", "evening", "night"]


class SubjectIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    difficulty: Literal["easy", "medium", "hard"] = "medium"
    priority: int = Field(5, ge=1, le=10)


class PreferencesUpdate(BaseModel):
    daily_study_hours: float | None = Field(None, gt=0, le=24)
    preferred_study_time: StudyTime | None = None
    session_minutes: int | None = Field(None, ge=5, le=180)
    break_minutes: int | None = Field(None, ge=1, le=60)


class ProfileUpdateRequest(BaseModel):
    """Partial profile update. ``preferences`` and ``settings`` are merged, ``subjects`` is replaced."""

    name: str | None = Field(None, min_length=1, max_length=100)
    avatar_url: str | None = Field(None, max_length=500)
    preferences: PreferencesUpdate | None = None
    subjects: list[SubjectIn] | None = None
    settings: dict[str, Any] | None = None


class PreferencesResponse(BaseModel):
    daily_study_hours: float
    preferred_study_time: str
    session_minutes: int
    break_minutes: int


class ProfileResponse(BaseModel):
    id: int
    name: str
    email: str
    auth_method: str
    email_verified: bool
    avatar_url: str | None = None
    preferences: PreferencesResponse
    subjects: list[dict[str, Any]]
    settings: dict[str, Any]
    created_at: datetime | None = None
    last_login: datetime | None = None
