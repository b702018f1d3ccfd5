"""Response schemas for analytics endpoints."""

from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel

from studyplanner.gamification.schemas import GamificationResponse

Period = Literal["week", "month", "year"]


class Overview(BaseModel):
    total_tasks: int
    completed_tasks: int
    completion_rate: int
    today_tasks: int
    active_study_plans: int
    completed_study_plans: int
    weekly_study_time: int
    current_streak: int
    total_points: int
    level: int


class SubjectProgress(BaseModel):
    subject: str
    total_time: int
    task_count: int


class DailyActivity(BaseModel):
    day: date
    study_time: int
    tasks_completed: int


class DashboardResponse(BaseModel):
    overview: Overview
    subject_progress: list[SubjectProgress]
    daily_activity: list[DailyActivity]
    gamification: GamificationResponse


class StudyTimeResponse(BaseModel):
    period: Period
    start_date: date
    end_date: date
    total_study_time: int
    average_session_time: float
    total_sessions: int
    subject_breakdown: dict[str, int]
    daily_breakdown: dict[str, int]
