"""Persisted point grants and study events with per-user serialization."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from studyplanner.clock import utc_today, utcnow
from studyplanner.db.models import PointsLedger, UserGamification
from studyplanner.gamification import ledger
from studyplanner.gamification.rewards import WEEK_WARRIOR, WEEK_WARRIOR_STREAK
from studyplanner.notifications.emitter import BADGE_EARNED, LEVEL_UP, NotificationEmitter

logger = logging.getLogger(__name__)


@dataclass
class StudyEventResult:
    streak: int
    badges: list[str] = field(default_factory=list)


def new_gamification(user_id: int) -> UserGamification:
    return UserGamification(
        user_id=user_id,
        total_points=0,
        level=1,
        current_streak=0,
        longest_streak=0,
        badges=[],
    )


async def get_gamification(db: AsyncSession, user_id: int) -> UserGamification | None:
    result = await db.execute(select(UserGamification).where(UserGamification.user_id == user_id))
    return result.scalar_one_or_none()


async def get_gamification_for_update(db: AsyncSession, user_id: int) -> UserGamification:
    """Load the user's gamification row under a row lock, creating it if missing.

    The lock is held until the caller's transaction ends, so concurrent
    completions for the same user apply their updates one after another.
    """
    result = await db.execute(
        select(UserGamification)
        .where(UserGamification.user_id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    gam = result.scalar_one_or_none()
    if gam is None:
        gam = new_gamification(user_id)
        db.add(gam)
        await db.flush()
    return gam


async def grant_points(
    db: AsyncSession,
    emitter: NotificationEmitter,
    user_id: int,
    amount: int,
    source: str,
    source_id: str | None = None,
    description: str | None = None,
) -> ledger.PointsResult:
    """Add points, record a ledger entry, and announce level-ups."""
    gam = await get_gamification_for_update(db, user_id)
    result = ledger.add_points(gam, amount)
    db.add(
        PointsLedger(
            user_id=user_id,
            amount=amount,
            source=source,
            source_id=source_id,
            description=description,
            created_at=utcnow(),
        )
    )
    await db.flush()

    if result.level_up:
        logger.info("User %s reached level %s", user_id, result.new_level)
        await emitter.emit(LEVEL_UP, user_id, {"level": result.new_level, "total_points": gam.total_points})
    return result


async def record_study_event(
    db: AsyncSession,
    emitter: NotificationEmitter,
    user_id: int,
    today: date | None = None,
) -> StudyEventResult:
    """Apply one qualifying study event: streak update plus streak badges."""
    gam = await get_gamification_for_update(db, user_id)
    ledger.update_streak(gam, today or utc_today())

    earned: list[str] = []
    if gam.current_streak >= WEEK_WARRIOR_STREAK and ledger.add_badge(gam, WEEK_WARRIOR):
        earned.append(WEEK_WARRIOR.name)
    await db.flush()

    for name in earned:
        badge = next(b for b in gam.badges if b.name == name)
        await emitter.emit(
            BADGE_EARNED,
            user_id,
            {"name": badge.name, "description": badge.description, "icon": badge.icon},
        )
    return StudyEventResult(streak=gam.current_streak, badges=earned)


async def get_points_history(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[PointsLedger], int]:
    """Paginated ledger entries, newest first."""
    total_result = await db.execute(
        select(func.count()).select_from(PointsLedger).where(PointsLedger.user_id == user_id)
    )
    total = total_result.scalar() or 0

    result = await db.execute(
        select(PointsLedger)
        .where(PointsLedger.user_id == user_id)
        .order_by(PointsLedger.created_at.desc(), PointsLedger.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), total
