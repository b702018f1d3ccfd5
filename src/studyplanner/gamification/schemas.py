"""Response schemas for gamification reads."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel


class BadgeResponse(BaseModel):
    model_config = {"from_attributes": True}

    name: str
    description: str | None = None
    icon: str | None = None
    earned_at: datetime


class StreakResponse(BaseModel):
    current: int
    longest: int
    last_study_date: date | None = None


class GamificationResponse(BaseModel):
    total_points: int
    level: int
    points_to_next_level: int
    streak: StreakResponse
    badges: list[BadgeResponse]


class PointsEntryResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    amount: int
    source: str
    source_id: str | None = None
    description: str | None = None
    created_at: datetime


class PointsHistoryResponse(BaseModel):
    entries: list[PointsEntryResponse]
    total: int
    page: int
    pages: int
