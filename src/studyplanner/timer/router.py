"""Focus timer endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from studyplanner.auth.dependencies import get_current_user
from studyplanner.database import get_session
from studyplanner.db.models import TimerSession, User
from studyplanner.dependencies import get_emitter
from studyplanner.notifications.emitter import NotificationEmitter
from studyplanner.pagination import page_count
from studyplanner.tasks.service import get_task
from studyplanner.timer import service
from studyplanner.timer.schemas import (
    CompleteTimerRequest,
    StartTimerRequest,
    TimerSessionListResponse,
    TimerSessionResponse,
)

router = APIRouter(prefix="/api/v1/timer", tags=["Timer"])


async def _get_owned_timer(db: AsyncSession, user: User, session_id: int) -> TimerSession:
    session = await service.get_timer(db, user.id, session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Timer session not found")
    return session


@router.post("/start", response_model=TimerSessionResponse, status_code=201)
async def start_timer(
    body: StartTimerRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    emitter: NotificationEmitter = Depends(get_emitter),
) -> TimerSessionResponse:
    if body.task_id is not None and await get_task(db, user.id, body.task_id) is None:
        raise HTTPException(status_code=404, detail="Task not found")
    session = await service.start_timer(db, emitter, user.id, body.kind, body.duration, body.task_id)
    await db.commit()
    return TimerSessionResponse.model_validate(session)


@router.get("/sessions", response_model=TimerSessionListResponse)
async def list_sessions(
    on_date: date | None = Query(None, alias="date"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> TimerSessionListResponse:
    sessions, total = await service.list_timers(db, user.id, on_date, page, limit)
    return TimerSessionListResponse(
        sessions=[TimerSessionResponse.model_validate(s) for s in sessions],
        total=total,
        page=page,
        pages=page_count(total, limit),
    )


@router.post("/{session_id}/pause", response_model=TimerSessionResponse)
async def pause_timer(
    session_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    emitter: NotificationEmitter = Depends(get_emitter),
) -> TimerSessionResponse:
    session = await _get_owned_timer(db, user, session_id)
    if not await service.pause_timer(db, emitter, session):
        raise HTTPException(status_code=409, detail="Timer is not running")
    await db.commit()
    return TimerSessionResponse.model_validate(session)


@router.post("/{session_id}/resume", response_model=TimerSessionResponse)
async def resume_timer(
    session_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    emitter: NotificationEmitter = Depends(get_emitter),
) -> TimerSessionResponse:
    session = await _get_owned_timer(db, user, session_id)
    if not await service.resume_timer(db, emitter, session):
        raise HTTPException(status_code=409, detail="Timer is not paused")
    await db.commit()
    return TimerSessionResponse.model_validate(session)


@router.post("/{session_id}/complete", response_model=TimerSessionResponse)
async def complete_timer(
    session_id: int,
    body: CompleteTimerRequest | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    emitter: NotificationEmitter = Depends(get_emitter),
) -> TimerSessionResponse:
    session = await _get_owned_timer(db, user, session_id)
    actual = body.actual_duration if body else None
    if not await service.complete_timer(db, emitter, session, actual):
        raise HTTPException(status_code=409, detail="Timer is already completed")
    await db.commit()
    return TimerSessionResponse.model_validate(session)
