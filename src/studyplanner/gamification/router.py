"""Gamification read endpoints under /users/me."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from studyplanner.auth.dependencies import get_current_user
from studyplanner.clock import utc_today
from studyplanner.database import get_session
from studyplanner.db.models import User, UserGamification
from studyplanner.gamification.ledger import streak_active
from studyplanner.gamification.levels import points_to_next_level
from studyplanner.gamification.schemas import (
    BadgeResponse,
    GamificationResponse,
    PointsEntryResponse,
    PointsHistoryResponse,
    StreakResponse,
)
from studyplanner.gamification.service import get_gamification, get_points_history, new_gamification
from studyplanner.pagination import page_count

router = APIRouter(prefix="/api/v1/users/me", tags=["Gamification"])


def gamification_response(gam: UserGamification) -> GamificationResponse:
    return GamificationResponse(
        total_points=gam.total_points or 0,
        level=gam.level or 1,
        points_to_next_level=points_to_next_level(gam.total_points or 0),
        streak=StreakResponse(
            current=streak_active(gam, utc_today()),
            longest=gam.longest_streak or 0,
            last_study_date=gam.last_study_date,
        ),
        badges=[BadgeResponse.model_validate(b) for b in gam.badges],
    )


async def load_gamification(db: AsyncSession, user_id: int) -> UserGamification:
    """The user's record, or an unsaved empty one if none exists yet."""
    return await get_gamification(db, user_id) or new_gamification(user_id)


@router.get("/gamification", response_model=GamificationResponse)
async def get_my_gamification(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> GamificationResponse:
    """Points, level, streak, and badges."""
    return gamification_response(await load_gamification(db, user.id))


@router.get("/points/history", response_model=PointsHistoryResponse)
async def get_my_points_history(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> PointsHistoryResponse:
    entries, total = await get_points_history(db, user.id, page, per_page)
    return PointsHistoryResponse(
        entries=[PointsEntryResponse.model_validate(e) for e in entries],
        total=total,
        page=page,
        pages=page_count(total, per_page),
    )


@router.get("/badges", response_model=list[BadgeResponse])
async def get_my_badges(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[BadgeResponse]:
    gam = await load_gamification(db, user.id)
    return [BadgeResponse.model_validate(b) for b in gam.badges]
