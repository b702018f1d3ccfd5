"""Mutation rules for study plans: topics, insights, weekly goals, milestones."""

from __future__ import annotations

from datetime import datetime

from studyplanner.clock import utcnow
from studyplanner.db.models import Milestone, PlanInsight, StudyPlan, WeeklyGoal
from studyplanner.planning.progress import recompute_progress

MAX_INSIGHTS = 20


def complete_topic(plan: StudyPlan, index: int, now: datetime | None = None) -> bool:
    """Mark the topic at ``index`` completed and refresh progress.

    Returns False when the index does not exist or the topic is already done.
    """
    if index < 0 or index >= len(plan.topics):
        return False
    topic = plan.topics[index]
    if topic.completed:
        return False

    now = now or utcnow()
    topic.completed = True
    topic.completed_at = now
    recompute_progress(plan, now)
    return True


def add_insight(plan: StudyPlan, insight: PlanInsight) -> PlanInsight:
    """Append an insight, keeping only the most recent ``MAX_INSIGHTS``."""
    plan.insights.append(insight)
    if len(plan.insights) > MAX_INSIGHTS:
        del plan.insights[: len(plan.insights) - MAX_INSIGHTS]
    return insight


def find_weekly_goal(plan: StudyPlan, week_number: int) -> WeeklyGoal | None:
    for goal in plan.weekly_goals:
        if goal.week_number == week_number:
            return goal
    return None


def log_study_hours(
    plan: StudyPlan,
    week_number: int,
    hours: float,
    now: datetime | None = None,
) -> WeeklyGoal | None:
    """Add studied hours to a weekly goal and to the plan total.

    A goal whose actual hours reach its target is marked completed.
    Returns None if the plan has no goal for ``week_number``.
    """
    goal = find_weekly_goal(plan, week_number)
    if goal is None:
        return None

    goal.actual_hours = (goal.actual_hours or 0) + hours
    if goal.target_hours and goal.actual_hours >= goal.target_hours:
        goal.completed = True
    plan.hours_studied = (plan.hours_studied or 0) + hours
    recompute_progress(plan, now)
    return goal


def weekly_efficiency(goal: WeeklyGoal) -> int:
    """Actual hours as a rounded percentage of target hours (0 without a target)."""
    if not goal.target_hours:
        return 0
    return round((goal.actual_hours or 0) / goal.target_hours * 100)


def check_milestones(plan: StudyPlan, now: datetime | None = None) -> list[Milestone]:
    """Complete milestones whose target percentage has been reached.

    Returns the milestones completed by this call.
    """
    now = now or utcnow()
    reached = []
    for milestone in plan.milestones:
        if milestone.completed:
            continue
        if plan.percentage_complete >= milestone.target_percentage:
            milestone.completed = True
            milestone.completed_at = now
            reached.append(milestone)
    return reached
