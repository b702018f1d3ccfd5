"""Task persistence, completion rewards, and pomodoro entry points."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studyplanner.clock import as_utc, utc_today, utcnow
from studyplanner.db.models import PomodoroSession, Task, TaskReminder
from studyplanner.gamification.rewards import POMODORO_COMPLETED_POINTS, TASK_COMPLETED_POINTS
from studyplanner.gamification.service import grant_points, record_study_event
from studyplanner.notifications.emitter import (
    POMODORO_COMPLETED,
    POMODORO_STARTED,
    TASK_COMPLETED,
    NotificationEmitter,
)
from studyplanner.pagination import paginate
from studyplanner.tasks import pomodoro
from studyplanner.tasks.recurrence import spawn_next_instance
from studyplanner.tasks.schedule import (
    TaskStatus,
    can_request,
    cancel_task,
    complete_task,
    refresh_overdue,
)
from studyplanner.tasks.schemas import ReminderIn, TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)


@dataclass
class TaskCompletion:
    points_awarded: int
    level_up: bool
    new_level: int | None
    streak: int
    badges: list[str] = field(default_factory=list)
    next_instance: Task | None = None


@dataclass
class PomodoroCompletion:
    points_awarded: int
    level_up: bool
    new_level: int | None


def _build_reminders(reminders: Sequence[ReminderIn]) -> list[TaskReminder]:
    return [TaskReminder(time=as_utc(r.time), message=r.message, sent=False) for r in reminders]


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def refresh_user_overdue(db: AsyncSession, user_id: int, now: datetime | None = None) -> int:
    """Move the user's pending tasks whose deadline has passed to overdue."""
    now = now or utcnow()
    result = await db.execute(
        select(Task).where(
            Task.user_id == user_id,
            Task.status == TaskStatus.PENDING.value,
            Task.scheduled_date <= utc_today(now),
        )
    )
    changed = sum(1 for task in result.scalars().all() if refresh_overdue(task, now))
    if changed:
        await db.flush()
    return changed


async def get_task(db: AsyncSession, user_id: int, task_id: int) -> Task | None:
    result = await db.execute(select(Task).where(Task.id == task_id, Task.user_id == user_id))
    task = result.scalar_one_or_none()
    if task is not None:
        refresh_overdue(task)
    return task


async def list_tasks(
    db: AsyncSession,
    user_id: int,
    *,
    status: str | None = None,
    subject: str | None = None,
    on_date: date | None = None,
    priority: str | None = None,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[Task], int]:
    """Filtered task page ordered by schedule."""
    await refresh_user_overdue(db, user_id)

    query = select(Task).where(Task.user_id == user_id)
    if status:
        query = query.where(Task.status == status)
    if subject:
        query = query.where(Task.subject.ilike(f"%{subject}%"))
    if on_date:
        query = query.where(Task.scheduled_date == on_date)
    if priority:
        query = query.where(Task.priority == priority)
    query = query.order_by(Task.scheduled_date, Task.scheduled_start, Task.id)
    return await paginate(db, query, page, per_page)


async def tasks_on(db: AsyncSession, user_id: int, day: date) -> list[Task]:
    await refresh_user_overdue(db, user_id)
    result = await db.execute(
        select(Task)
        .where(Task.user_id == user_id, Task.scheduled_date == day)
        .order_by(Task.scheduled_start, Task.id)
    )
    return list(result.scalars().all())


async def tasks_by_day(db: AsyncSession, user_id: int, start: date, days: int = 7) -> dict[str, list[Task]]:
    """Tasks from ``start`` over ``days`` days, keyed by ISO date. Every day has a key."""
    await refresh_user_overdue(db, user_id)
    end = start + timedelta(days=days)
    result = await db.execute(
        select(Task)
        .where(Task.user_id == user_id, Task.scheduled_date >= start, Task.scheduled_date < end)
        .order_by(Task.scheduled_date, Task.scheduled_start, Task.id)
    )
    grouped: dict[str, list[Task]] = {(start + timedelta(days=i)).isoformat(): [] for i in range(days)}
    for task in result.scalars().all():
        grouped[task.scheduled_date.isoformat()].append(task)
    return grouped


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


async def create_task(db: AsyncSession, user_id: int, data: TaskCreate, now: datetime | None = None) -> Task:
    now = now or utcnow()
    task = Task(
        user_id=user_id,
        study_plan_id=data.study_plan_id,
        title=data.title,
        description=data.description,
        subject=data.subject,
        topic=data.topic,
        kind=data.kind,
        priority=data.priority,
        difficulty=data.difficulty,
        status=TaskStatus.PENDING.value,
        scheduled_date=data.scheduled_date,
        scheduled_start=data.scheduled_start,
        scheduled_end=data.scheduled_end,
        estimated_duration=data.estimated_duration,
        actual_duration=0,
        completion_percentage=0,
        recurrence=data.recurrence.model_dump(mode="json") if data.recurrence else None,
        tags=list(data.tags),
        color=data.color,
        ai_generated=False,
        created_at=now,
        updated_at=now,
        pomodoro_sessions=[],
        reminders=_build_reminders(data.reminders),
    )
    refresh_overdue(task, now)
    db.add(task)
    await db.flush()
    logger.info("Created task %s for user %s", task.id, user_id)
    return task


def update_task(task: Task, data: TaskUpdate, now: datetime | None = None) -> bool:
    """Apply a partial update.

    Returns False, changing nothing, if the requested status is not one a
    client may set from the current one. Overdue and in-progress are never
    accepted as new values.
    """
    now = now or utcnow()
    if data.status is not None and not can_request(task.status, data.status):
        return False

    fields = data.model_dump(exclude_unset=True, exclude={"status", "recurrence", "reminders"})
    for name, value in fields.items():
        if value is not None:
            setattr(task, name, value)
    if "recurrence" in data.model_fields_set:
        task.recurrence = data.recurrence.model_dump(mode="json") if data.recurrence else None
    if data.reminders is not None:
        task.reminders = _build_reminders(data.reminders)

    if data.status == TaskStatus.COMPLETED:
        complete_task(task, now=now)
    elif data.status is not None:
        task.status = data.status

    # A rescheduled overdue task becomes pending again until its new deadline passes.
    if task.status == TaskStatus.OVERDUE and {"scheduled_date", "scheduled_end"} & fields.keys():
        task.status = TaskStatus.PENDING.value
    refresh_overdue(task, now)
    task.updated_at = now
    return True


async def delete_task(db: AsyncSession, task: Task) -> None:
    await db.delete(task)
    await db.flush()


async def complete(
    db: AsyncSession,
    emitter: NotificationEmitter,
    task: Task,
    notes: str | None = None,
    rating: int | None = None,
    now: datetime | None = None,
) -> TaskCompletion | None:
    """Complete a task and apply its rewards.

    Awards task points, applies one streak update, and spawns the next
    instance of a recurring task. Returns None if the task is terminal.
    """
    now = now or utcnow()
    if not complete_task(task, notes, rating, now):
        return None
    task.updated_at = now

    points = await grant_points(
        db,
        emitter,
        task.user_id,
        TASK_COMPLETED_POINTS,
        source="task",
        source_id=str(task.id),
        description=f'Completed task "{task.title}"',
    )
    study = await record_study_event(db, emitter, task.user_id, utc_today(now))

    next_instance = spawn_next_instance(task)
    if next_instance is not None:
        db.add(next_instance)
    await db.flush()

    await emitter.emit(
        TASK_COMPLETED,
        task.user_id,
        {
            "task_id": task.id,
            "title": task.title,
            "points_awarded": TASK_COMPLETED_POINTS,
            "level_up": points.level_up,
            "new_level": points.new_level,
            "streak": study.streak,
            "badges": study.badges,
        },
    )
    return TaskCompletion(
        points_awarded=TASK_COMPLETED_POINTS,
        level_up=points.level_up,
        new_level=points.new_level,
        streak=study.streak,
        badges=study.badges,
        next_instance=next_instance,
    )


def cancel(task: Task, now: datetime | None = None) -> bool:
    if not cancel_task(task):
        return False
    task.updated_at = now or utcnow()
    return True


async def start_pomodoro(
    db: AsyncSession,
    emitter: NotificationEmitter,
    task: Task,
    duration: int = pomodoro.DEFAULT_SESSION_MINUTES,
    kind: str = "work",
    now: datetime | None = None,
) -> tuple[int, PomodoroSession] | None:
    """Start a session. Returns ``(index, session)``, or None when rejected."""
    now = now or utcnow()
    session = pomodoro.start_session(task, duration, kind, now)
    if session is None:
        return None
    task.updated_at = now
    await db.flush()

    index = len(task.pomodoro_sessions) - 1
    await emitter.emit(
        POMODORO_STARTED,
        task.user_id,
        {"task_id": task.id, "session_index": index, "duration": duration, "kind": kind},
    )
    return index, session


async def complete_pomodoro(
    db: AsyncSession,
    emitter: NotificationEmitter,
    task: Task,
    session_index: int,
    now: datetime | None = None,
) -> PomodoroCompletion | None:
    """Finish a session and award pomodoro points. None if the session is not found."""
    now = now or utcnow()
    if not pomodoro.complete_session(task, session_index, now):
        return None
    task.updated_at = now

    points = await grant_points(
        db,
        emitter,
        task.user_id,
        POMODORO_COMPLETED_POINTS,
        source="pomodoro",
        source_id=f"{task.id}:{session_index}",
        description=f'Pomodoro session on "{task.title}"',
    )
    await emitter.emit(
        POMODORO_COMPLETED,
        task.user_id,
        {
            "task_id": task.id,
            "session_index": session_index,
            "actual_duration": task.actual_duration,
            "points_awarded": POMODORO_COMPLETED_POINTS,
        },
    )
    return PomodoroCompletion(
        points_awarded=POMODORO_COMPLETED_POINTS,
        level_up=points.level_up,
        new_level=points.new_level,
    )
