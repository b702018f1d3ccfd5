"""AI-assisted plan generation, chat, summaries, tips, and quizzes.

Model output is treated as untrusted: plan JSON is mapped field by field with
fallbacks, and anything that cannot be mapped raises ``MalformedResponseError``.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime
from typing import Any

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from studyplanner.ai import prompts
from studyplanner.ai.client import MalformedResponseError, TextGenerationClient, parse_json_response
from studyplanner.ai.schemas import GeneratePlanRequest, QuizQuestion
from studyplanner.clock import as_utc, utcnow
from studyplanner.db.models import StudyPlan, User, UserGamification
from studyplanner.planning.progress import days_until
from studyplanner.plans.schemas import (
    AllocationIn,
    InsightIn,
    MilestoneIn,
    PlanCreate,
    TopicIn,
    WeeklyGoalIn,
)
from studyplanner.plans.service import add_plan_insight, create_plan

logger = logging.getLogger(__name__)

_DIFFICULTIES = {"easy", "medium", "hard"}
_PRIORITIES = {"low", "medium", "high"}
_INSIGHT_KINDS = {"recommendation", "warning", "tip", "achievement"}


def _choice(value: Any, allowed: set[str], default: str) -> str:  # noqa: ANN401
    return value if isinstance(value, str) and value in allowed else default


def _number(value: Any, default: float = 0) -> float:  # noqa: ANN401
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    # json.loads accepts NaN and Infinity
    return max(number, 0) if math.isfinite(number) else default


def _parse_datetime(value: Any) -> datetime | None:  # noqa: ANN401
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return as_utc(parsed)


def _parse_date(value: Any) -> date | None:  # noqa: ANN401
    parsed = _parse_datetime(value)
    return parsed.date() if parsed else None


def _topic_from_json(item: dict[str, Any]) -> TopicIn:
    priority = int(_number(item.get("priority"), 5))
    return TopicIn(
        name=str(item.get("topic") or item.get("name") or "Untitled topic")[:200],
        subtopics=[str(s) for s in item.get("subtopics") or []],
        estimated_hours=_number(item.get("estimatedHours")),
        difficulty=_choice(item.get("difficulty"), _DIFFICULTIES, "medium"),
        priority=min(max(priority, 1), 10),
    )


def _weekly_goal_from_json(item: dict[str, Any], fallback_week: int) -> WeeklyGoalIn:
    week = int(_number(item.get("weekNumber"), fallback_week)) or fallback_week
    return WeeklyGoalIn(
        week_number=week,
        start_date=_parse_date(item.get("startDate")),
        end_date=_parse_date(item.get("endDate")),
        target_hours=_number(item.get("targetHours")),
        allocations=[
            AllocationIn(topic=str(a.get("topic", "")), hours=_number(a.get("hours")))
            for a in item.get("topics") or []
            if isinstance(a, dict)
        ],
    )


def _milestone_from_json(item: dict[str, Any]) -> MilestoneIn:
    percentage = int(_number(item.get("targetPercentage"), 100))
    return MilestoneIn(
        title=str(item.get("title") or "Milestone")[:200],
        description=item.get("description"),
        target_date=_parse_datetime(item.get("targetDate")),
        target_percentage=min(percentage, 100),
    )


def _insight_from_json(item: dict[str, Any]) -> InsightIn | None:
    message = item.get("message")
    if not isinstance(message, str) or not message.strip():
        return None
    return InsightIn(
        kind=_choice(item.get("type"), _INSIGHT_KINDS, "tip"),
        message=message,
        priority=_choice(item.get("priority"), _PRIORITIES, "medium"),
    )


def _dicts(value: Any) -> list[dict[str, Any]]:  # noqa: ANN401
    return [item for item in value or [] if isinstance(item, dict)] if isinstance(value, list) else []


def plan_from_generated(
    payload: Any,  # noqa: ANN401
    request: GeneratePlanRequest,
    total_hours: float,
    daily_hours: float,
) -> tuple[PlanCreate, list[InsightIn]]:
    """Map the model's plan JSON onto a plan definition and its insights.

    Raises:
        MalformedResponseError: If the payload is not an object or cannot be
            turned into a valid plan.
    """
    if not isinstance(payload, dict):
        msg = "plan response was not a JSON object"
        raise MalformedResponseError(msg)

    try:
        data = PlanCreate(
            title=str(payload.get("title") or f"{request.subject} Study Plan")[:200],
            description=payload.get("description"),
            subject=request.subject,
            exam_date=request.exam_date,
            total_hours=total_hours,
            daily_hours=daily_hours,
            difficulty=request.difficulty,
            topics=[_topic_from_json(t) for t in _dicts(payload.get("syllabus"))],
            weekly_goals=[
                _weekly_goal_from_json(g, i) for i, g in enumerate(_dicts(payload.get("weeklyGoals")), start=1)
            ],
            milestones=[_milestone_from_json(m) for m in _dicts(payload.get("milestones"))],
        )
    except ValidationError as e:
        msg = "plan response could not be mapped"
        raise MalformedResponseError(msg) from e

    insights = [i for i in (_insight_from_json(x) for x in _dicts(payload.get("aiInsights"))) if i]
    return data, insights


async def generate_study_plan(
    db: AsyncSession,
    client: TextGenerationClient,
    user: User,
    request: GeneratePlanRequest,
    now: datetime | None = None,
) -> StudyPlan:
    """Ask the model for a plan and store it as an AI-generated plan."""
    now = now or utcnow()
    exam_date = as_utc(request.exam_date)
    days = days_until(exam_date, now)
    daily_hours = request.daily_hours or user.daily_study_hours or 2
    total_hours = request.total_hours or max(days, 0) * daily_hours

    prompt = prompts.study_plan_prompt(
        user,
        subject=request.subject,
        exam_date=exam_date.date(),
        days_until_exam=days,
        total_hours=total_hours,
        daily_hours=daily_hours,
        difficulty=request.difficulty,
        topics=request.topics,
    )
    reply = await client.generate(prompt, system=prompts.PLAN_SYSTEM, options=prompts.PLAN_OPTIONS)
    data, insights = plan_from_generated(parse_json_response(reply), request, total_hours, daily_hours)

    plan = await create_plan(db, user.id, data, ai_generated=True)
    for insight in insights:
        add_plan_insight(plan, insight)
    await db.flush()
    logger.info("Generated study plan %s for user %s (%d topics)", plan.id, user.id, len(plan.topics))
    return plan


async def chat(
    client: TextGenerationClient,
    user: User,
    gam: UserGamification | None,
    message: str,
    context: str | None = None,
) -> str:
    return await client.generate(
        message,
        system=prompts.chat_system_prompt(user, gam, context),
        options=prompts.CHAT_OPTIONS,
    )


async def summarize(client: TextGenerationClient, content: str, kind: str = "text") -> str:
    return await client.generate(
        prompts.summary_prompt(content, kind),
        system=prompts.SUMMARY_SYSTEM,
        options=prompts.SUMMARY_OPTIONS,
    )


async def study_tips(
    client: TextGenerationClient,
    user: User,
    gam: UserGamification | None,
    subject: str,
    topic: str | None = None,
    difficulty: str | None = None,
) -> str:
    return await client.generate(
        prompts.study_tips_prompt(user, gam, subject, topic, difficulty),
        system=prompts.TIPS_SYSTEM,
        options=prompts.TIPS_OPTIONS,
    )


async def generate_quiz(
    client: TextGenerationClient,
    subject: str,
    topic: str,
    difficulty: str = "medium",
    question_count: int = 5,
) -> list[QuizQuestion]:
    """Generate multiple-choice questions.

    Raises:
        MalformedResponseError: If the reply is not a list of questions.
    """
    reply = await client.generate(
        prompts.quiz_prompt(subject, topic, difficulty, question_count),
        system=prompts.QUIZ_SYSTEM,
        options=prompts.QUIZ_OPTIONS,
    )
    payload = parse_json_response(reply)
    if not isinstance(payload, list):
        msg = "quiz response was not a JSON array"
        raise MalformedResponseError(msg)

    try:
        return [
            QuizQuestion(
                question=item["question"],
                options=item["options"],
                correct_answer=item["correctAnswer"],
                explanation=item.get("explanation"),
            )
            for item in _dicts(payload)
        ]
    except (KeyError, ValidationError) as e:
        msg = "quiz response could not be mapped"
        raise MalformedResponseError(msg) from e
