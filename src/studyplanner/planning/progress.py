"""Study plan progress and recommended pace.

Pure functions of plan state. ``recompute_progress`` is called explicitly by
every plan mutation entry point so stored progress always matches the topic
list.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from studyplanner.clock import as_utc, utcnow

if TYPE_CHECKING:
    from studyplanner.db.models import PlanTopic, StudyPlan

SECONDS_PER_DAY = 86_400
ON_TRACK_TOLERANCE = 0.8


@dataclass(frozen=True)
class PlanProgress:
    """Derived progress summary for a study plan."""

    topics_completed: int
    topics_total: int
    percentage_complete: int
    hours_studied: float
    days_remaining: int
    on_track: bool


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return math.floor(value + 0.5)


def days_until(exam_date: datetime, now: datetime) -> int:
    """Whole days left until the exam, rounded up. Never negative."""
    seconds = (as_utc(exam_date) - as_utc(now)).total_seconds()
    return max(0, math.ceil(seconds / SECONDS_PER_DAY))


def expected_percentage(days_remaining: int, total_plan_days: float) -> float:
    """Share of the plan that should be done by now, assuming linear pacing."""
    if days_remaining == 0:
        return 100.0
    return max(0.0, 100 - (days_remaining / total_plan_days) * 100)


def compute_progress(
    topics: Sequence[PlanTopic],
    exam_date: datetime,
    created_at: datetime,
    hours_studied: float = 0,
    now: datetime | None = None,
) -> PlanProgress:
    """Derive completion, days remaining, and the on-track flag.

    A plan with no topics is 0% complete and on track. A plan whose exam date
    is not after its creation date has no meaningful pace target and is
    always on track.
    """
    now = now or utcnow()
    total = len(topics)
    completed = sum(1 for topic in topics if topic.completed)
    percentage = round_half_up(100 * completed / total) if total else 0
    days_remaining = days_until(exam_date, now)

    total_plan_days = (as_utc(exam_date) - as_utc(created_at)).total_seconds() / SECONDS_PER_DAY
    if total == 0 or total_plan_days <= 0:
        on_track = True
    else:
        on_track = percentage >= expected_percentage(days_remaining, total_plan_days) * ON_TRACK_TOLERANCE

    return PlanProgress(
        topics_completed=completed,
        topics_total=total,
        percentage_complete=percentage,
        hours_studied=hours_studied or 0,
        days_remaining=days_remaining,
        on_track=on_track,
    )


def recompute_progress(plan: StudyPlan, now: datetime | None = None) -> PlanProgress:
    """Recompute and store the progress columns of ``plan``."""
    progress = compute_progress(
        plan.topics,
        plan.exam_date,
        plan.created_at or utcnow(),
        hours_studied=plan.hours_studied or 0,
        now=now,
    )
    plan.topics_completed = progress.topics_completed
    plan.topics_total = progress.topics_total
    plan.percentage_complete = progress.percentage_complete
    plan.days_remaining = progress.days_remaining
    plan.on_track = progress.on_track
    return progress


def remaining_hours(topics: Sequence[PlanTopic]) -> float:
    """Estimated hours of all topics not yet completed."""
    return sum(topic.estimated_hours or 0 for topic in topics if not topic.completed)


def recommended_daily_hours(topics: Sequence[PlanTopic], days_remaining: int) -> float:
    """Daily hours needed to finish the remaining topics before the exam.

    With no days left the full remaining workload is returned.
    """
    hours = remaining_hours(topics)
    if days_remaining <= 0:
        return hours
    return math.ceil(hours / days_remaining)
