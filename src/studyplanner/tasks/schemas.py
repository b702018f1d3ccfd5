"""Request/response schemas for task endpoints."""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field

TaskKind = Literal["study", "review", "practice", "exam", "assignment", "other"]
TaskPriority = Literal["low", "medium", "high", "urgent"]
TaskDifficulty = Literal["easy", "medium", "hard"]
TaskStatusName = Literal["pending", "in-progress", "completed", "cancelled", "overdue"]
SessionKind = Literal["work", "short-break", "long-break"]

_TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class RecurrenceIn(BaseModel):
    enabled: bool = False
    frequency: Literal["daily", "weekly", "monthly"] = "weekly"
    interval: int = Field(1, ge=1, le=52)
    end_date: date | None = None
    days_of_week: list[Annotated[int, Field(ge=0, le=6)]] = Field(default_factory=list)


class ReminderIn(BaseModel):
    time: datetime
    message: str | None = Field(None, max_length=256)


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    subject: str = Field(..., min_length=1, max_length=100)
    topic: str | None = Field(None, max_length=200)
    study_plan_id: int | None = None
    kind: TaskKind = "study"
    priority: TaskPriority = "medium"
    difficulty: TaskDifficulty = "medium"
    scheduled_date: date
    scheduled_start: str = Field(..., pattern=_TIME_PATTERN)
    scheduled_end: str = Field(..., pattern=_TIME_PATTERN)
    estimated_duration: int = Field(..., ge=1, le=24 * 60)
    recurrence: RecurrenceIn | None = None
    reminders: list[ReminderIn] = []
    tags: list[str] = []
    color: str = Field("#3B82F6", max_length=16)


class TaskUpdate(BaseModel):
    """Partial update. ``reminders``, when given, replaces the stored list."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    subject: str | None = Field(None, min_length=1, max_length=100)
    topic: str | None = Field(None, max_length=200)
    kind: TaskKind | None = None
    priority: TaskPriority | None = None
    difficulty: TaskDifficulty | None = None
    status: TaskStatusName | None = None
    scheduled_date: date | None = None
    scheduled_start: str | None = Field(None, pattern=_TIME_PATTERN)
    scheduled_end: str | None = Field(None, pattern=_TIME_PATTERN)
    estimated_duration: int | None = Field(None, ge=1, le=24 * 60)
    recurrence: RecurrenceIn | None = None
    reminders: list[ReminderIn] | None = None
    tags: list[str] | None = None
    color: str | None = Field(None, max_length=16)


class CompleteTaskRequest(BaseModel):
    notes: str | None = None
    rating: int | None = Field(None, ge=1, le=5)


class StartPomodoroRequest(BaseModel):
    duration: int = Field(25, ge=1, le=180)
    kind: SessionKind = "work"


class CompletePomodoroRequest(BaseModel):
    session_index: int


# --- Responses ---


class PomodoroSessionResponse(BaseModel):
    model_config = {"from_attributes": True}

    start_time: datetime
    end_time: datetime | None = None
    duration: int
    completed: bool
    kind: str


class ReminderResponse(BaseModel):
    model_config = {"from_attributes": True}

    time: datetime
    message: str | None = None
    sent: bool


class TaskResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    study_plan_id: int | None = None
    title: str
    description: str | None = None
    subject: str
    topic: str | None = None
    kind: str
    priority: str
    difficulty: str
    status: str
    scheduled_date: date
    scheduled_start: str
    scheduled_end: str
    estimated_duration: int
    actual_duration: int
    completion_percentage: int
    completed_at: datetime | None = None
    completion_notes: str | None = None
    completion_rating: int | None = None
    recurrence: dict | None = None
    tags: list[str]
    color: str
    ai_generated: bool
    pomodoro_sessions: list[PomodoroSessionResponse]
    reminders: list[ReminderResponse]
    created_at: datetime
    updated_at: datetime


class TaskListResponse(BaseModel):
    tasks: list[TaskResponse]
    total: int
    page: int
    pages: int


class CompleteTaskResponse(BaseModel):
    task: TaskResponse
    points_awarded: int
    level_up: bool
    new_level: int | None = None
    streak: int
    badges: list[str] = []
    next_instance: TaskResponse | None = None


class PomodoroStartedResponse(BaseModel):
    task: TaskResponse
    session_index: int
    session: PomodoroSessionResponse


class PomodoroCompletedResponse(BaseModel):
    task: TaskResponse
    points_awarded: int
    level_up: bool
    new_level: int | None = None


class NextReminderResponse(BaseModel):
    reminder: ReminderResponse | None = None


class CalendarDayResponse(BaseModel):
    day: date
    tasks: list[TaskResponse]


class WeekResponse(BaseModel):
    start_date: date
    end_date: date
    days: dict[str, list[TaskResponse]]
