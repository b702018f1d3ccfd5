"""Study plan persistence and mutation entry points.

Every function that changes topics, hours, or the exam date recomputes the
plan's progress before returning.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studyplanner.clock import utcnow
from studyplanner.db.models import Milestone, PlanInsight, PlanTopic, StudyPlan, Task, WeeklyGoal
from studyplanner.gamification.rewards import TOPIC_COMPLETED_POINTS
from studyplanner.gamification.service import grant_points
from studyplanner.notifications.emitter import TOPIC_COMPLETED, NotificationEmitter
from studyplanner.pagination import paginate
from studyplanner.planning.plan_rules import (
    add_insight,
    check_milestones,
    complete_topic,
    log_study_hours,
    weekly_efficiency,
)
from studyplanner.planning.progress import compute_progress, recommended_daily_hours, recompute_progress
from studyplanner.plans.schemas import (
    InsightIn,
    MilestoneIn,
    PlanCreate,
    PlanUpdate,
    TopicIn,
    WeeklyGoalIn,
)
from studyplanner.tasks.schedule import TaskStatus, refresh_overdue

logger = logging.getLogger(__name__)


@dataclass
class TopicCompletion:
    points_awarded: int
    level_up: bool
    new_level: int | None
    milestones_reached: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Building sub-entities
# ---------------------------------------------------------------------------


def build_topic(data: TopicIn, now: datetime | None = None) -> PlanTopic:
    return PlanTopic(
        name=data.name,
        subtopics=list(data.subtopics),
        estimated_hours=data.estimated_hours,
        difficulty=data.difficulty,
        priority=data.priority,
        completed=data.completed,
        completed_at=(now or utcnow()) if data.completed else None,
        notes=data.notes,
    )


def build_weekly_goal(data: WeeklyGoalIn) -> WeeklyGoal:
    return WeeklyGoal(
        week_number=data.week_number,
        start_date=data.start_date,
        end_date=data.end_date,
        target_hours=data.target_hours,
        actual_hours=0,
        allocations=[a.model_dump() for a in data.allocations],
        completed=False,
    )


def build_milestone(data: MilestoneIn) -> Milestone:
    return Milestone(
        title=data.title,
        description=data.description,
        target_date=data.target_date,
        target_percentage=data.target_percentage,
        completed=False,
    )


def build_plan(
    user_id: int,
    data: PlanCreate,
    *,
    ai_generated: bool = False,
    now: datetime | None = None,
) -> StudyPlan:
    """Construct a new plan with derived progress filled in."""
    now = now or utcnow()
    plan = StudyPlan(
        user_id=user_id,
        title=data.title,
        description=data.description,
        subject=data.subject,
        exam_date=data.exam_date,
        total_hours=data.total_hours,
        daily_hours=data.daily_hours,
        difficulty=data.difficulty,
        priority=data.priority,
        status="active",
        ai_generated=ai_generated,
        hours_studied=0,
        created_at=now,
        updated_at=now,
        topics=[build_topic(t, now) for t in data.topics],
        weekly_goals=[build_weekly_goal(g) for g in data.weekly_goals],
        milestones=[build_milestone(m) for m in data.milestones],
        insights=[],
    )
    recompute_progress(plan, now)
    return plan


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


async def create_plan(
    db: AsyncSession,
    user_id: int,
    data: PlanCreate,
    *,
    ai_generated: bool = False,
) -> StudyPlan:
    plan = build_plan(user_id, data, ai_generated=ai_generated)
    db.add(plan)
    await db.flush()
    logger.info("Created study plan %s for user %s", plan.id, user_id)
    return plan


async def get_plan(db: AsyncSession, user_id: int, plan_id: int) -> StudyPlan | None:
    """Fetch one of the user's plans.

    Days remaining and on-track depend on the clock, so they are recomputed
    here; they are persisted with the next change to the plan.
    """
    result = await db.execute(
        select(StudyPlan).where(StudyPlan.id == plan_id, StudyPlan.user_id == user_id)
    )
    plan = result.scalar_one_or_none()
    if plan is not None:
        recompute_progress(plan)
    return plan


async def list_plans(
    db: AsyncSession,
    user_id: int,
    *,
    status: str | None = None,
    subject: str | None = None,
    page: int = 1,
    per_page: int = 10,
) -> tuple[list[StudyPlan], int]:
    query = select(StudyPlan).where(StudyPlan.user_id == user_id)
    if status:
        query = query.where(StudyPlan.status == status)
    if subject:
        query = query.where(StudyPlan.subject.ilike(f"%{subject}%"))
    query = query.order_by(StudyPlan.created_at.desc(), StudyPlan.id.desc())
    plans, total = await paginate(db, query, page, per_page)
    for plan in plans:
        recompute_progress(plan)
    return plans, total


def update_plan(plan: StudyPlan, data: PlanUpdate, now: datetime | None = None) -> StudyPlan:
    """Apply a partial update. Given lists replace the stored ones."""
    now = now or utcnow()
    fields = data.model_dump(exclude_unset=True, exclude={"topics", "weekly_goals", "milestones"})
    for name, value in fields.items():
        if value is not None:
            setattr(plan, name, value)

    if data.topics is not None:
        plan.topics = [build_topic(t, now) for t in data.topics]
    if data.weekly_goals is not None:
        plan.weekly_goals = [build_weekly_goal(g) for g in data.weekly_goals]
    if data.milestones is not None:
        plan.milestones = [build_milestone(m) for m in data.milestones]

    plan.updated_at = now
    recompute_progress(plan, now)
    check_milestones(plan, now)
    return plan


async def delete_plan(db: AsyncSession, plan: StudyPlan) -> None:
    """Delete a plan together with its tasks."""
    result = await db.execute(select(Task).where(Task.study_plan_id == plan.id))
    for task in result.scalars().all():
        await db.delete(task)
    await db.delete(plan)
    await db.flush()
    logger.info("Deleted study plan %s", plan.id)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def complete_plan_topic(
    db: AsyncSession,
    emitter: NotificationEmitter,
    plan: StudyPlan,
    topic_index: int,
    now: datetime | None = None,
) -> TopicCompletion | None:
    """Complete a topic, award points, and announce it.

    Returns None when the topic does not exist or was already completed.
    """
    now = now or utcnow()
    if not complete_topic(plan, topic_index, now):
        return None
    reached = check_milestones(plan, now)
    plan.updated_at = now

    points = await grant_points(
        db,
        emitter,
        plan.user_id,
        TOPIC_COMPLETED_POINTS,
        source="topic",
        source_id=f"{plan.id}:{topic_index}",
        description=f'Completed topic "{plan.topics[topic_index].name}"',
    )
    await emitter.emit(
        TOPIC_COMPLETED,
        plan.user_id,
        {
            "plan_id": plan.id,
            "topic_index": topic_index,
            "percentage_complete": plan.percentage_complete,
            "points_awarded": TOPIC_COMPLETED_POINTS,
            "level_up": points.level_up,
            "new_level": points.new_level,
        },
    )
    return TopicCompletion(
        points_awarded=TOPIC_COMPLETED_POINTS,
        level_up=points.level_up,
        new_level=points.new_level,
        milestones_reached=[m.title for m in reached],
    )


def log_plan_hours(plan: StudyPlan, week_number: int, hours: float) -> WeeklyGoal | None:
    goal = log_study_hours(plan, week_number, hours)
    if goal is not None:
        plan.updated_at = utcnow()
    return goal


def add_plan_insight(plan: StudyPlan, data: InsightIn) -> PlanInsight:
    insight = PlanInsight(
        kind=data.kind,
        message=data.message,
        priority=data.priority,
        dismissed=False,
        created_at=utcnow(),
    )
    return add_insight(plan, insight)


async def plan_progress_detail(db: AsyncSession, plan: StudyPlan, now: datetime | None = None) -> dict:
    """Progress, task counts, time tracking, and weekly efficiency for a plan."""
    now = now or utcnow()
    result = await db.execute(select(Task).where(Task.study_plan_id == plan.id))
    tasks = list(result.scalars().all())
    for task in tasks:
        refresh_overdue(task, now)

    counts = {status.value: 0 for status in TaskStatus}
    for task in tasks:
        counts[task.status] = counts.get(task.status, 0) + 1

    completed = [t for t in tasks if t.status == TaskStatus.COMPLETED]
    total_study_time = sum(t.actual_duration or 0 for t in completed)
    progress = compute_progress(plan.topics, plan.exam_date, plan.created_at, plan.hours_studied, now)

    return {
        "progress": asdict(progress),
        "tasks": {
            "total": len(tasks),
            "completed": counts[TaskStatus.COMPLETED.value],
            "pending": counts[TaskStatus.PENDING.value],
            "in_progress": counts[TaskStatus.IN_PROGRESS.value],
            "overdue": counts[TaskStatus.OVERDUE.value],
            "cancelled": counts[TaskStatus.CANCELLED.value],
        },
        "time_tracking": {
            "total_study_time": total_study_time,
            "average_session_time": round(total_study_time / len(completed), 1) if completed else 0,
            "recommended_daily_hours": recommended_daily_hours(plan.topics, progress.days_remaining),
        },
        "weekly_progress": [
            {
                "week_number": goal.week_number,
                "target_hours": goal.target_hours,
                "actual_hours": goal.actual_hours,
                "completed": goal.completed,
                "efficiency": weekly_efficiency(goal),
            }
            for goal in plan.weekly_goals
        ],
    }
