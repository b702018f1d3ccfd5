"""Study plan endpoints: CRUD, topic completion, hours, progress, insights."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from studyplanner.auth.dependencies import get_current_user
from studyplanner.database import get_session
from studyplanner.db.models import StudyPlan, User
from studyplanner.dependencies import get_emitter
from studyplanner.notifications.emitter import NotificationEmitter
from studyplanner.pagination import page_count
from studyplanner.plans.schemas import (
    CompleteTopicRequest,
    CompleteTopicResponse,
    InsightIn,
    InsightResponse,
    LogHoursRequest,
    PlanCreate,
    PlanListResponse,
    PlanProgressResponse,
    PlanResponse,
    PlanStatus,
    PlanUpdate,
    ProgressResponse,
    WeeklyGoalResponse,
)
from studyplanner.plans.service import (
    add_plan_insight,
    complete_plan_topic,
    create_plan,
    delete_plan,
    get_plan,
    list_plans,
    log_plan_hours,
    plan_progress_detail,
    update_plan,
)

router = APIRouter(prefix="/api/v1/study-plans", tags=["Study Plans"])


def plan_response(plan: StudyPlan) -> PlanResponse:
    return PlanResponse(
        id=plan.id,
        title=plan.title,
        description=plan.description,
        subject=plan.subject,
        exam_date=plan.exam_date,
        total_hours=plan.total_hours,
        daily_hours=plan.daily_hours,
        difficulty=plan.difficulty,
        priority=plan.priority,
        status=plan.status,
        ai_generated=plan.ai_generated,
        progress=ProgressResponse(
            topics_completed=plan.topics_completed,
            topics_total=plan.topics_total,
            percentage_complete=plan.percentage_complete,
            hours_studied=plan.hours_studied,
            days_remaining=plan.days_remaining,
            on_track=plan.on_track,
        ),
        topics=plan.topics,
        weekly_goals=plan.weekly_goals,
        milestones=plan.milestones,
        insights=plan.insights,
        created_at=plan.created_at,
        updated_at=plan.updated_at,
    )


async def _get_owned_plan(db: AsyncSession, user: User, plan_id: int) -> StudyPlan:
    plan = await get_plan(db, user.id, plan_id)
    if plan is None:
        raise HTTPException(status_code=404, detail="Study plan not found")
    return plan


@router.get("", response_model=PlanListResponse)
async def list_study_plans(
    status: PlanStatus | None = Query(None),
    subject: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> PlanListResponse:
    """List the user's plans, newest first."""
    plans, total = await list_plans(db, user.id, status=status, subject=subject, page=page, per_page=limit)
    return PlanListResponse(
        plans=[plan_response(p) for p in plans],
        total=total,
        page=page,
        pages=page_count(total, limit),
    )


@router.post("", response_model=PlanResponse, status_code=201)
async def create_study_plan(
    body: PlanCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> PlanResponse:
    plan = await create_plan(db, user.id, body)
    await db.commit()
    return plan_response(plan)


@router.get("/{plan_id}", response_model=PlanResponse)
async def get_study_plan(
    plan_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> PlanResponse:
    return plan_response(await _get_owned_plan(db, user, plan_id))


@router.put("/{plan_id}", response_model=PlanResponse)
async def update_study_plan(
    plan_id: int,
    body: PlanUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> PlanResponse:
    plan = await _get_owned_plan(db, user, plan_id)
    update_plan(plan, body)
    await db.commit()
    return plan_response(plan)


@router.delete("/{plan_id}")
async def delete_study_plan(
    plan_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    """Delete a plan and every task linked to it."""
    plan = await _get_owned_plan(db, user, plan_id)
    await delete_plan(db, plan)
    await db.commit()
    return {"status": "deleted"}


@router.post("/{plan_id}/complete-topic", response_model=CompleteTopicResponse)
async def complete_topic_endpoint(
    plan_id: int,
    body: CompleteTopicRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    emitter: NotificationEmitter = Depends(get_emitter),
) -> CompleteTopicResponse:
    """Mark a topic completed (+50 points)."""
    plan = await _get_owned_plan(db, user, plan_id)
    outcome = await complete_plan_topic(db, emitter, plan, body.topic_index)
    if outcome is None:
        raise HTTPException(status_code=400, detail="Topic not found or already completed")
    await db.commit()
    return CompleteTopicResponse(
        plan=plan_response(plan),
        points_awarded=outcome.points_awarded,
        level_up=outcome.level_up,
        new_level=outcome.new_level,
        milestones_reached=outcome.milestones_reached,
    )


@router.post("/{plan_id}/weekly-goals/{week_number}/hours", response_model=WeeklyGoalResponse)
async def log_hours(
    plan_id: int,
    week_number: int,
    body: LogHoursRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> WeeklyGoalResponse:
    """Add studied hours to a week of the plan."""
    plan = await _get_owned_plan(db, user, plan_id)
    goal = log_plan_hours(plan, week_number, body.hours)
    if goal is None:
        raise HTTPException(status_code=404, detail="Weekly goal not found")
    await db.commit()
    return WeeklyGoalResponse.model_validate(goal)


@router.get("/{plan_id}/progress", response_model=PlanProgressResponse)
async def get_plan_progress(
    plan_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> PlanProgressResponse:
    """Progress, task breakdown, time tracking, and weekly efficiency."""
    plan = await _get_owned_plan(db, user, plan_id)
    detail = await plan_progress_detail(db, plan)
    await db.commit()
    return PlanProgressResponse.model_validate(detail)


@router.get("/{plan_id}/insights", response_model=list[InsightResponse])
async def list_insights(
    plan_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[InsightResponse]:
    plan = await _get_owned_plan(db, user, plan_id)
    return [InsightResponse.model_validate(i) for i in plan.insights]


@router.post("/{plan_id}/insights", response_model=InsightResponse, status_code=201)
async def create_insight(
    plan_id: int,
    body: InsightIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> InsightResponse:
    """Attach an insight. Only the 20 most recent are kept."""
    plan = await _get_owned_plan(db, user, plan_id)
    insight = add_plan_insight(plan, body)
    await db.commit()
    return InsightResponse.model_validate(insight)
