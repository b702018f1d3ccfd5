"""Analytics endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from studyplanner.analytics import service
from studyplanner.analytics.schemas import DashboardResponse, Period, StudyTimeResponse
from studyplanner.auth.dependencies import get_current_user
from studyplanner.database import get_session
from studyplanner.db.models import User
from studyplanner.gamification.router import gamification_response, load_gamification
from studyplanner.tasks.service import refresh_user_overdue

router = APIRouter(prefix="/api/v1/analytics", tags=["Analytics"])


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> DashboardResponse:
    """Task and plan totals, weekly study time, recent activity, and gamification."""
    await refresh_user_overdue(db, user.id)
    gam = await load_gamification(db, user.id)
    overview, subjects, activity = await service.dashboard(db, user.id, gam)
    await db.commit()
    return DashboardResponse(
        overview=overview,
        subject_progress=subjects,
        daily_activity=activity,
        gamification=gamification_response(gam),
    )


@router.get("/study-time", response_model=StudyTimeResponse)
async def get_study_time(
    period: Period = Query("week"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> StudyTimeResponse:
    return await service.study_time(db, user.id, period)
