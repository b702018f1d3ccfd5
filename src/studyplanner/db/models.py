"""ORM models for users, study plans, tasks, gamification, timers, and notes.

Ordered sub-collections (plan topics, milestones, pomodoro sessions) carry a
``position`` column maintained by ``ordering_list``; the list index is the
index used by the API.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studyplanner.clock import utcnow
from studyplanner.db.base import Base, BigIntId, JSONType


def _default_settings() -> dict[str, Any]:
    return {
        "theme": "light",
        "notifications": {"email": True, "push": True, "study_reminders": True, "break_reminders": True},
        "language": "en",
    }


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Account, profile, and study preferences."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    password_hash: Mapped[str | None] = mapped_column(String(256), nullable=True)
    google_id: Mapped[str | None] = mapped_column(String(128), nullable=True, unique=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False, server_default="0")

    # --- Study preferences ---
    daily_study_hours: Mapped[float] = mapped_column(Float, default=4, server_default="4")
    preferred_study_time: Mapped[str] = mapped_column(String(16), default="evening", server_default="evening")
    session_minutes: Mapped[int] = mapped_column(Integer, default=25, server_default="25")
    break_minutes: Mapped[int] = mapped_column(Integer, default=15, server_default="15")
    subjects: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, default=list)

    settings: Mapped[dict[str, Any]] = mapped_column(JSONType, default=_default_settings)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def auth_method(self) -> str:
        return "google" if self.google_id and not self.password_hash else "email"


class EmailVerificationToken(Base):
    """Token for email address verification."""

    __tablename__ = "email_verification_tokens"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token_hash: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class PasswordResetToken(Base):
    """Token for password reset flow."""

    __tablename__ = "password_reset_tokens"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token_hash: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# Gamification
# ---------------------------------------------------------------------------


class UserGamification(Base):
    """Points, level, streak, and badges. Single row per user."""

    __tablename__ = "user_gamification"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default="1")
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_study_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    badges: Mapped[list[UserBadge]] = relationship(
        "UserBadge",
        order_by="UserBadge.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class UserBadge(Base):
    """Badges earned by users. UNIQUE(user_id, name) prevents duplicates."""

    __tablename__ = "user_badges"
    __table_args__ = (UniqueConstraint("user_id", "name", name="user_badges_user_id_name_key"),)

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("user_gamification.user_id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    icon: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    earned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class PointsLedger(Base):
    """Immutable log of point grants."""

    __tablename__ = "points_ledger"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    source: Mapped[str] = mapped_column(String(32), nullable=False)
    source_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    description: Mapped[str | None] = mapped_column(String(256), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


# ---------------------------------------------------------------------------
# Study plans
# ---------------------------------------------------------------------------


class StudyPlan(Base):
    """A study goal for one subject, with topics, weekly goals, and derived progress."""

    __tablename__ = "study_plans"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    subject: Mapped[str] = mapped_column(String(100), nullable=False)
    exam_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    total_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    daily_hours: Mapped[float] = mapped_column(Float, nullable=False, default=2)
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False, default="medium")
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default="medium")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")
    ai_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # --- Derived progress ---
    topics_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    topics_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    percentage_complete: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    hours_studied: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    days_remaining: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    on_track: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    topics: Mapped[list[PlanTopic]] = relationship(
        "PlanTopic",
        order_by="PlanTopic.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    weekly_goals: Mapped[list[WeeklyGoal]] = relationship(
        "WeeklyGoal",
        order_by="WeeklyGoal.week_number",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    milestones: Mapped[list[Milestone]] = relationship(
        "Milestone",
        order_by="Milestone.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    insights: Mapped[list[PlanInsight]] = relationship(
        "PlanInsight",
        order_by="PlanInsight.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class PlanTopic(Base):
    """A syllabus unit within a study plan."""

    __tablename__ = "plan_topics"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    plan_id: Mapped[int] = mapped_column(ForeignKey("study_plans.id", ondelete="CASCADE"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    subtopics: Mapped[list[str]] = mapped_column(JSONType, default=list)
    estimated_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False, default="medium")
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)


class WeeklyGoal(Base):
    """Target and actual study hours for one week of a plan."""

    __tablename__ = "weekly_goals"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    plan_id: Mapped[int] = mapped_column(ForeignKey("study_plans.id", ondelete="CASCADE"), nullable=False, index=True)
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    target_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    actual_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    allocations: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, default=list)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Milestone(Base):
    """A dated progress checkpoint within a plan."""

    __tablename__ = "milestones"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    plan_id: Mapped[int] = mapped_column(ForeignKey("study_plans.id", ondelete="CASCADE"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    target_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    target_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class PlanInsight(Base):
    """Recommendation, warning, tip, or achievement attached to a plan."""

    __tablename__ = "plan_insights"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    plan_id: Mapped[int] = mapped_column(ForeignKey("study_plans.id", ondelete="CASCADE"), nullable=False, index=True)
    kind: Mapped[str] = mapped_column(String(16), nullable=False, default="tip")
    message: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default="medium")
    dismissed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class Task(Base):
    """A scheduled unit of study work."""

    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    study_plan_id: Mapped[int | None] = mapped_column(
        ForeignKey("study_plans.id", ondelete="CASCADE"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    subject: Mapped[str] = mapped_column(String(100), nullable=False)
    topic: Mapped[str | None] = mapped_column(String(200), nullable=True)
    kind: Mapped[str] = mapped_column(String(16), nullable=False, default="study")
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default="medium")
    difficulty: Mapped[str] = mapped_column(String(16), nullable=False, default="medium")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", index=True)
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    scheduled_start: Mapped[str] = mapped_column(String(5), nullable=False)
    scheduled_end: Mapped[str] = mapped_column(String(5), nullable=False)
    estimated_duration: Mapped[int] = mapped_column(Integer, nullable=False)
    actual_duration: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # --- Completion ---
    completion_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completion_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    completion_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)

    recurrence: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    tags: Mapped[list[str]] = mapped_column(JSONType, default=list)
    color: Mapped[str] = mapped_column(String(16), nullable=False, default="#3B82F6")
    ai_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    pomodoro_sessions: Mapped[list[PomodoroSession]] = relationship(
        "PomodoroSession",
        order_by="PomodoroSession.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    reminders: Mapped[list[TaskReminder]] = relationship(
        "TaskReminder",
        order_by="TaskReminder.time",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class PomodoroSession(Base):
    """A timed work or break session attached to a task."""

    __tablename__ = "pomodoro_sessions"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    task_id: Mapped[int] = mapped_column(ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=25)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False, default="work")


class TaskReminder(Base):
    """A reminder scheduled for a task."""

    __tablename__ = "task_reminders"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    task_id: Mapped[int] = mapped_column(ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    message: Mapped[str | None] = mapped_column(String(256), nullable=True)
    sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


# ---------------------------------------------------------------------------
# Focus timer
# ---------------------------------------------------------------------------


class TimerSession(Base):
    """Free-standing focus timer session, optionally linked to a task."""

    __tablename__ = "timer_sessions"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    task_id: Mapped[int | None] = mapped_column(ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True)
    kind: Mapped[str] = mapped_column(String(16), nullable=False, default="pomodoro")
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    actual_duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    paused: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    paused_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    paused_minutes: Mapped[float] = mapped_column(Float, nullable=False, default=0)


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


class Note(Base):
    """A study note, summary, flashcard, or saved resource."""

    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(BigIntId, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    study_plan_id: Mapped[int | None] = mapped_column(
        ForeignKey("study_plans.id", ondelete="SET NULL"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    subject: Mapped[str] = mapped_column(String(100), nullable=False)
    topic: Mapped[str | None] = mapped_column(String(200), nullable=True)
    tags: Mapped[list[str]] = mapped_column(JSONType, default=list)
    kind: Mapped[str] = mapped_column(String(16), nullable=False, default="note")
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    attachments: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
