"""Free-standing focus timer sessions.

A session is running, paused, or completed. Time spent paused is
accumulated in ``paused_minutes`` when the session resumes or completes.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studyplanner.clock import as_utc, utcnow
from studyplanner.db.models import TimerSession
from studyplanner.notifications.emitter import (
    TIMER_COMPLETED,
    TIMER_PAUSED,
    TIMER_RESUMED,
    TIMER_STARTED,
    NotificationEmitter,
)
from studyplanner.pagination import paginate

logger = logging.getLogger(__name__)


def _minutes_between(start: datetime, end: datetime) -> float:
    return max((as_utc(end) - as_utc(start)).total_seconds() / 60, 0)


def pause(session: TimerSession, now: datetime | None = None) -> bool:
    """Pause a running session. False if it is completed or already paused."""
    if session.completed or session.paused:
        return False
    session.paused = True
    session.paused_at = now or utcnow()
    return True


def resume(session: TimerSession, now: datetime | None = None) -> bool:
    """Resume a paused session, adding the pause to ``paused_minutes``."""
    if session.completed or not session.paused:
        return False
    now = now or utcnow()
    if session.paused_at is not None:
        session.paused_minutes = round((session.paused_minutes or 0) + _minutes_between(session.paused_at, now), 2)
    session.paused = False
    session.paused_at = None
    return True


def complete(session: TimerSession, actual_duration: int | None = None, now: datetime | None = None) -> bool:
    """Stop a session. ``actual_duration`` defaults to the planned duration."""
    if session.completed:
        return False
    now = now or utcnow()
    if session.paused:
        resume(session, now)
    session.completed = True
    session.end_time = now
    session.actual_duration = actual_duration if actual_duration is not None else session.duration
    return True


async def start_timer(
    db: AsyncSession,
    emitter: NotificationEmitter,
    user_id: int,
    kind: str = "pomodoro",
    duration: int = 25,
    task_id: int | None = None,
) -> TimerSession:
    session = TimerSession(
        user_id=user_id,
        task_id=task_id,
        kind=kind,
        duration=duration,
        start_time=utcnow(),
        completed=False,
        paused=False,
        paused_minutes=0,
    )
    db.add(session)
    await db.flush()
    await emitter.emit(
        TIMER_STARTED,
        user_id,
        {"session_id": session.id, "duration": duration, "kind": kind, "start_time": session.start_time.isoformat()},
    )
    return session


async def get_timer(db: AsyncSession, user_id: int, session_id: int) -> TimerSession | None:
    result = await db.execute(
        select(TimerSession).where(TimerSession.id == session_id, TimerSession.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def pause_timer(db: AsyncSession, emitter: NotificationEmitter, session: TimerSession) -> bool:
    if not pause(session):
        return False
    await db.flush()
    await emitter.emit(TIMER_PAUSED, session.user_id, {"session_id": session.id})
    return True


async def resume_timer(db: AsyncSession, emitter: NotificationEmitter, session: TimerSession) -> bool:
    if not resume(session):
        return False
    await db.flush()
    await emitter.emit(
        TIMER_RESUMED,
        session.user_id,
        {"session_id": session.id, "paused_minutes": session.paused_minutes},
    )
    return True


async def complete_timer(
    db: AsyncSession,
    emitter: NotificationEmitter,
    session: TimerSession,
    actual_duration: int | None = None,
) -> bool:
    if not complete(session, actual_duration):
        return False
    await db.flush()
    await emitter.emit(
        TIMER_COMPLETED,
        session.user_id,
        {"session_id": session.id, "actual_duration": session.actual_duration},
    )
    logger.info("Timer session %s completed (%s min)", session.id, session.actual_duration)
    return True


async def list_timers(
    db: AsyncSession,
    user_id: int,
    on_date: date | None = None,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[TimerSession], int]:
    """Sessions newest first, optionally limited to one UTC day."""
    query = select(TimerSession).where(TimerSession.user_id == user_id)
    if on_date is not None:
        start = datetime.combine(on_date, time.min, tzinfo=timezone.utc)
        query = query.where(TimerSession.start_time >= start, TimerSession.start_time < start + timedelta(days=1))
    query = query.order_by(TimerSession.start_time.desc(), TimerSession.id.desc())
    return await paginate(db, query, page, per_page)
