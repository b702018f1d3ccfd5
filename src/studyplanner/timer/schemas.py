"""Request/response schemas for focus timer endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class StartTimerRequest(BaseModel):
    task_id: int | None = None
    kind: Literal["pomodoro", "custom", "break"] = "pomodoro"
    duration: int = Field(25, ge=1, le=24 * 60)


class CompleteTimerRequest(BaseModel):
    actual_duration: int | None = Field(None, ge=0, le=24 * 60)


class TimerSessionResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    task_id: int | None = None
    kind: str
    duration: int
    actual_duration: int | None = None
    start_time: datetime
    end_time: datetime | None = None
    completed: bool
    paused: bool
    paused_minutes: float


class TimerSessionListResponse(BaseModel):
    sessions: list[TimerSessionResponse]
    total: int
    page: int
    pages: int
