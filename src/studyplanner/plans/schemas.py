"""Request/response schemas for study plan endpoints."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

Difficulty = Literal["easy", "medium", "hard"]
Priority = Literal["low", "medium", "high"]
PlanStatus = Literal["active", "completed", "paused", "cancelled"]
InsightKind = Literal["recommendation", "warning", "tip", "achievement"]


# --- Sub-entities (input) ---


class TopicIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    subtopics: list[str] = []
    estimated_hours: float = Field(0, ge=0)
    difficulty: Difficulty = "medium"
    priority: int = Field(5, ge=1, le=10)
    completed: bool = False
    notes: str | None = None


class AllocationIn(BaseModel):
    topic: str
    hours: float = Field(0, ge=0)
    completed: bool = False


class WeeklyGoalIn(BaseModel):
    week_number: int = Field(..., ge=1)
    start_date: date | None = None
    end_date: date | None = None
    target_hours: float = Field(0, ge=0)
    allocations: list[AllocationIn] = []


class MilestoneIn(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    target_date: datetime | None = None
    target_percentage: int = Field(100, ge=0, le=100)


class InsightIn(BaseModel):
    kind: InsightKind = "tip"
    message: str = Field(..., min_length=1)
    priority: Priority = "medium"


# --- Plan (input) ---


class PlanCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    subject: str = Field(..., min_length=1, max_length=100)
    exam_date: datetime
    total_hours: float = Field(0, ge=0)
    daily_hours: float = Field(2, ge=0, le=24)
    difficulty: Difficulty = "medium"
    priority: Priority = "medium"
    topics: list[TopicIn] = []
    weekly_goals: list[WeeklyGoalIn] = []
    milestones: list[MilestoneIn] = []


class PlanUpdate(BaseModel):
    """Partial update. Lists, when given, replace the stored ones."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    subject: str | None = Field(None, min_length=1, max_length=100)
    exam_date: datetime | None = None
    total_hours: float | None = Field(None, ge=0)
    daily_hours: float | None = Field(None, ge=0, le=24)
    difficulty: Difficulty | None = None
    priority: Priority | None = None
    status: PlanStatus | None = None
    topics: list[TopicIn] | None = None
    weekly_goals: list[WeeklyGoalIn] | None = None
    milestones: list[MilestoneIn] | None = None


class CompleteTopicRequest(BaseModel):
    topic_index: int


class LogHoursRequest(BaseModel):
    hours: float = Field(..., gt=0, le=24 * 7)


# --- Responses ---


class TopicResponse(BaseModel):
    model_config = {"from_attributes": True}

    name: str
    subtopics: list[str]
    estimated_hours: float
    difficulty: str
    priority: int
    completed: bool
    completed_at: datetime | None = None
    notes: str | None = None


class WeeklyGoalResponse(BaseModel):
    model_config = {"from_attributes": True}

    week_number: int
    start_date: date | None = None
    end_date: date | None = None
    target_hours: float
    actual_hours: float
    allocations: list[dict]
    completed: bool


class MilestoneResponse(BaseModel):
    model_config = {"from_attributes": True}

    title: str
    description: str | None = None
    target_date: datetime | None = None
    target_percentage: int
    completed: bool
    completed_at: datetime | None = None


class InsightResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    kind: str
    message: str
    priority: str
    dismissed: bool
    created_at: datetime


class ProgressResponse(BaseModel):
    topics_completed: int
    topics_total: int
    percentage_complete: int
    hours_studied: float
    days_remaining: int
    on_track: bool


class PlanResponse(BaseModel):
    id: int
    title: str
    description: str | None = None
    subject: str
    exam_date: datetime
    total_hours: float
    daily_hours: float
    difficulty: str
    priority: str
    status: str
    ai_generated: bool
    progress: ProgressResponse
    topics: list[TopicResponse]
    weekly_goals: list[WeeklyGoalResponse]
    milestones: list[MilestoneResponse]
    insights: list[InsightResponse]
    created_at: datetime
    updated_at: datetime


class PlanListResponse(BaseModel):
    plans: list[PlanResponse]
    total: int
    page: int
    pages: int


class CompleteTopicResponse(BaseModel):
    plan: PlanResponse
    points_awarded: int
    level_up: bool
    new_level: int | None = None
    milestones_reached: list[str] = []


class TaskCounts(BaseModel):
    total: int = 0
    completed: int = 0
    pending: int = 0
    in_progress: int = 0
    overdue: int = 0
    cancelled: int = 0


class TimeTracking(BaseModel):
    total_study_time: int
    average_session_time: float
    recommended_daily_hours: float


class WeeklyProgressEntry(BaseModel):
    week_number: int
    target_hours: float
    actual_hours: float
    completed: bool
    efficiency: int


class PlanProgressResponse(BaseModel):
    progress: ProgressResponse
    tasks: TaskCounts
    time_tracking: TimeTracking
    weekly_progress: list[WeeklyProgressEntry]
