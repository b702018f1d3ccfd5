"""Task endpoints: CRUD, completion, pomodoro sessions, and calendar views."""

from __future__ import annotations

from datetime import date, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from studyplanner.auth.dependencies import get_current_user
from studyplanner.database import get_session
from studyplanner.db.models import Task, User
from studyplanner.dependencies import get_emitter
from studyplanner.notifications.emitter import NotificationEmitter
from studyplanner.pagination import page_count
from studyplanner.plans.service import get_plan
from studyplanner.tasks import pomodoro, service
from studyplanner.tasks.schemas import (
    CalendarDayResponse,
    CompletePomodoroRequest,
    CompleteTaskRequest,
    CompleteTaskResponse,
    NextReminderResponse,
    PomodoroCompletedResponse,
    PomodoroSessionResponse,
    PomodoroStartedResponse,
    ReminderResponse,
    StartPomodoroRequest,
    TaskCreate,
    TaskListResponse,
    TaskPriority,
    TaskResponse,
    TaskStatusName,
    TaskUpdate,
    WeekResponse,
)

router = APIRouter(prefix="/api/v1/tasks", tags=["Tasks"])


async def _get_owned_task(db: AsyncSession, user: User, task_id: int) -> Task:
    task = await service.get_task(db, user.id, task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


def _task_response(task: Task) -> TaskResponse:
    return TaskResponse.model_validate(task)


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    status: TaskStatusName | None = Query(None),
    subject: str | None = Query(None),
    on_date: date | None = Query(None, alias="date"),
    priority: TaskPriority | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> TaskListResponse:
    tasks, total = await service.list_tasks(
        db,
        user.id,
        status=status,
        subject=subject,
        on_date=on_date,
        priority=priority,
        page=page,
        per_page=limit,
    )
    await db.commit()
    return TaskListResponse(
        tasks=[_task_response(t) for t in tasks],
        total=total,
        page=page,
        pages=page_count(total, limit),
    )


@router.get("/calendar/{day}", response_model=CalendarDayResponse)
async def calendar_day(
    day: date,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> CalendarDayResponse:
    """All tasks scheduled on one day."""
    tasks = await service.tasks_on(db, user.id, day)
    await db.commit()
    return CalendarDayResponse(day=day, tasks=[_task_response(t) for t in tasks])


@router.get("/week/{start_date}", response_model=WeekResponse)
async def week_view(
    start_date: date,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> WeekResponse:
    """Seven days of tasks starting at ``start_date``, grouped by date."""
    grouped = await service.tasks_by_day(db, user.id, start_date)
    await db.commit()
    return WeekResponse(
        start_date=start_date,
        end_date=start_date + timedelta(days=6),
        days={day: [_task_response(t) for t in tasks] for day, tasks in grouped.items()},
    )


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(
    body: TaskCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> TaskResponse:
    if body.study_plan_id is not None and await get_plan(db, user.id, body.study_plan_id) is None:
        raise HTTPException(status_code=404, detail="Study plan not found")
    task = await service.create_task(db, user.id, body)
    await db.commit()
    return _task_response(task)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> TaskResponse:
    task = await _get_owned_task(db, user, task_id)
    await db.commit()
    return _task_response(task)


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    body: TaskUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> TaskResponse:
    task = await _get_owned_task(db, user, task_id)
    if not service.update_task(task, body):
        raise HTTPException(status_code=409, detail=f"Cannot change status from {task.status} to {body.status}")
    await db.commit()
    return _task_response(task)


@router.delete("/{task_id}")
async def delete_task(
    task_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    task = await _get_owned_task(db, user, task_id)
    await service.delete_task(db, task)
    await db.commit()
    return {"status": "deleted"}


@router.post("/{task_id}/complete", response_model=CompleteTaskResponse)
async def complete_task(
    task_id: int,
    body: CompleteTaskRequest | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    emitter: NotificationEmitter = Depends(get_emitter),
) -> CompleteTaskResponse:
    """Complete a task (+25 points, streak update)."""
    body = body or CompleteTaskRequest()
    task = await _get_owned_task(db, user, task_id)
    outcome = await service.complete(db, emitter, task, body.notes, body.rating)
    if outcome is None:
        raise HTTPException(status_code=409, detail=f"Task is already {task.status}")
    await db.commit()
    return CompleteTaskResponse(
        task=_task_response(task),
        points_awarded=outcome.points_awarded,
        level_up=outcome.level_up,
        new_level=outcome.new_level,
        streak=outcome.streak,
        badges=outcome.badges,
        next_instance=_task_response(outcome.next_instance) if outcome.next_instance else None,
    )


@router.post("/{task_id}/cancel", response_model=TaskResponse)
async def cancel_task(
    task_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> TaskResponse:
    task = await _get_owned_task(db, user, task_id)
    if not service.cancel(task):
        raise HTTPException(status_code=409, detail=f"Task is already {task.status}")
    await db.commit()
    return _task_response(task)


@router.post("/{task_id}/start-pomodoro", response_model=PomodoroStartedResponse)
async def start_pomodoro(
    task_id: int,
    body: StartPomodoroRequest | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    emitter: NotificationEmitter = Depends(get_emitter),
) -> PomodoroStartedResponse:
    """Start a pomodoro session. Only one session may run per task."""
    body = body or StartPomodoroRequest()
    task = await _get_owned_task(db, user, task_id)
    started = await service.start_pomodoro(db, emitter, task, body.duration, body.kind)
    if started is None:
        raise HTTPException(status_code=409, detail="Cannot start a session on this task")
    await db.commit()
    index, session = started
    return PomodoroStartedResponse(
        task=_task_response(task),
        session_index=index,
        session=PomodoroSessionResponse.model_validate(session),
    )


@router.post("/{task_id}/complete-pomodoro", response_model=PomodoroCompletedResponse)
async def complete_pomodoro(
    task_id: int,
    body: CompletePomodoroRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    emitter: NotificationEmitter = Depends(get_emitter),
) -> PomodoroCompletedResponse:
    """Complete a pomodoro session (+10 points)."""
    task = await _get_owned_task(db, user, task_id)
    outcome = await service.complete_pomodoro(db, emitter, task, body.session_index)
    if outcome is None:
        raise HTTPException(status_code=400, detail="Session not found")
    await db.commit()
    return PomodoroCompletedResponse(
        task=_task_response(task),
        points_awarded=outcome.points_awarded,
        level_up=outcome.level_up,
        new_level=outcome.new_level,
    )


@router.get("/{task_id}/next-reminder", response_model=NextReminderResponse)
async def get_next_reminder(
    task_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> NextReminderResponse:
    task = await _get_owned_task(db, user, task_id)
    reminder = pomodoro.next_reminder(task)
    return NextReminderResponse(reminder=ReminderResponse.model_validate(reminder) if reminder else None)
