"""Dashboard and study-time aggregates over a user's tasks and plans.

Study time of a task is the time spent in its completed work sessions.
Weeks start on Sunday.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from studyplanner.analytics.schemas import (
    DailyActivity,
    Overview,
    Period,
    StudyTimeResponse,
    SubjectProgress,
)
from studyplanner.clock import utc_today, utcnow
from studyplanner.db.models import StudyPlan, Task, UserGamification
from studyplanner.gamification.ledger import streak_active
from studyplanner.planning.progress import round_half_up
from studyplanner.tasks.pomodoro import total_study_time
from studyplanner.tasks.schedule import TaskStatus

_PERIOD_DAYS = {"week": 7, "month": 30, "year": 365}


def week_start(day: date) -> date:
    return day - timedelta(days=(day.weekday() + 1) % 7)


def completion_rate(completed: int, total: int) -> int:
    return round_half_up(completed / total * 100) if total else 0


async def _count(db: AsyncSession, query: Select[Any]) -> int:
    return (await db.execute(query)).scalar_one()


async def completed_tasks_between(db: AsyncSession, user_id: int, start: date, end: date) -> list[Task]:
    """Completed tasks scheduled in ``[start, end)``."""
    result = await db.execute(
        select(Task).where(
            Task.user_id == user_id,
            Task.status == TaskStatus.COMPLETED.value,
            Task.scheduled_date >= start,
            Task.scheduled_date < end,
        )
    )
    return list(result.scalars().all())


async def subject_progress(db: AsyncSession, user_id: int) -> list[SubjectProgress]:
    """Completed-task minutes and counts per subject, largest first."""
    total_time = func.coalesce(func.sum(Task.actual_duration), 0)
    result = await db.execute(
        select(Task.subject, total_time, func.count(Task.id))
        .where(Task.user_id == user_id, Task.status == TaskStatus.COMPLETED.value)
        .group_by(Task.subject)
        .order_by(total_time.desc(), Task.subject)
    )
    return [SubjectProgress(subject=s, total_time=int(t), task_count=c) for s, t, c in result.all()]


def daily_activity(tasks: list[Task], today: date, days: int = 7) -> list[DailyActivity]:
    by_day: dict[date, list[Task]] = defaultdict(list)
    for task in tasks:
        by_day[task.scheduled_date].append(task)
    activity = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        day_tasks = by_day.get(day, [])
        activity.append(
            DailyActivity(
                day=day,
                study_time=sum(total_study_time(t) for t in day_tasks),
                tasks_completed=len(day_tasks),
            )
        )
    return activity


async def dashboard(
    db: AsyncSession,
    user_id: int,
    gam: UserGamification,
    now: datetime | None = None,
) -> tuple[Overview, list[SubjectProgress], list[DailyActivity]]:
    today = utc_today(now or utcnow())

    total_tasks = await _count(db, select(func.count(Task.id)).where(Task.user_id == user_id))
    completed_tasks = await _count(
        db,
        select(func.count(Task.id)).where(Task.user_id == user_id, Task.status == TaskStatus.COMPLETED.value),
    )
    today_tasks = await _count(
        db, select(func.count(Task.id)).where(Task.user_id == user_id, Task.scheduled_date == today)
    )
    plans_by_status = dict(
        (
            await db.execute(
                select(StudyPlan.status, func.count(StudyPlan.id))
                .where(StudyPlan.user_id == user_id)
                .group_by(StudyPlan.status)
            )
        ).all()
    )

    start = week_start(today)
    week_tasks = await completed_tasks_between(db, user_id, start, start + timedelta(days=7))
    recent_tasks = await completed_tasks_between(db, user_id, today - timedelta(days=6), today + timedelta(days=1))

    overview = Overview(
        total_tasks=total_tasks,
        completed_tasks=completed_tasks,
        completion_rate=completion_rate(completed_tasks, total_tasks),
        today_tasks=today_tasks,
        active_study_plans=plans_by_status.get("active", 0),
        completed_study_plans=plans_by_status.get("completed", 0),
        weekly_study_time=sum(total_study_time(t) for t in week_tasks),
        current_streak=streak_active(gam, today),
        total_points=gam.total_points or 0,
        level=gam.level or 1,
    )
    return overview, await subject_progress(db, user_id), daily_activity(recent_tasks, today)


async def study_time(
    db: AsyncSession,
    user_id: int,
    period: Period = "week",
    now: datetime | None = None,
) -> StudyTimeResponse:
    """Study time of completed tasks over the trailing period, ending today."""
    end = utc_today(now or utcnow())
    start = end - timedelta(days=_PERIOD_DAYS[period])
    tasks = await completed_tasks_between(db, user_id, start, end + timedelta(days=1))

    subjects: dict[str, int] = defaultdict(int)
    days: dict[str, int] = defaultdict(int)
    for task in tasks:
        minutes = total_study_time(task)
        subjects[task.subject] += minutes
        days[task.scheduled_date.isoformat()] += minutes

    total = sum(subjects.values())
    return StudyTimeResponse(
        period=period,
        start_date=start,
        end_date=end,
        total_study_time=total,
        average_session_time=round(total / len(tasks), 1) if tasks else 0,
        total_sessions=len(tasks),
        subject_breakdown=dict(subjects),
        daily_breakdown=dict(sorted(days.items())),
    )
