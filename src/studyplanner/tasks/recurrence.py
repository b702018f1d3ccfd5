"""Recurring task rules.

A rule is stored on the task as JSON::

    {"enabled": true, "frequency": "weekly", "interval": 1,
     "end_date": "2026-12-31", "days_of_week": [1, 3]}

Days of week count from 0 = Sunday to 6 = Saturday.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

from studyplanner.db.models import Task
from studyplanner.tasks.schedule import TaskStatus

FREQUENCIES = ("daily", "weekly", "monthly")


@dataclass(frozen=True)
class RecurrenceRule:
    frequency: str
    interval: int = 1
    end_date: date | None = None
    days_of_week: tuple[int, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> RecurrenceRule | None:
        """Build a rule from stored JSON. Disabled or missing rules yield None."""
        if not data or not data.get("enabled") or data.get("frequency") not in FREQUENCIES:
            return None
        end_date = data.get("end_date")
        if isinstance(end_date, str):
            end_date = date.fromisoformat(end_date)
        return cls(
            frequency=data["frequency"],
            interval=max(1, int(data.get("interval") or 1)),
            end_date=end_date,
            days_of_week=tuple(sorted(set(data.get("days_of_week") or ()))),
        )


def _sunday_index(day: date) -> int:
    return (day.weekday() + 1) % 7


def _week_start(day: date) -> date:
    return day - timedelta(days=_sunday_index(day))


def _add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def next_occurrence(rule: RecurrenceRule, after: date) -> date | None:
    """First date strictly after ``after`` on which the task recurs, or None past the end date."""
    if rule.frequency == "daily":
        candidate = after + timedelta(days=rule.interval)
    elif rule.frequency == "weekly" and rule.days_of_week:
        anchor = _week_start(after)
        candidate = None
        for offset in range(1, 7 * rule.interval + 1):
            day = after + timedelta(days=offset)
            week = (day - anchor).days // 7
            if week % rule.interval == 0 and _sunday_index(day) in rule.days_of_week:
                candidate = day
                break
        if candidate is None:
            return None
    elif rule.frequency == "weekly":
        candidate = after + timedelta(weeks=rule.interval)
    else:
        candidate = _add_months(after, rule.interval)

    if rule.end_date is not None and candidate > rule.end_date:
        return None
    return candidate


def spawn_next_instance(task: Task) -> Task | None:
    """Pending copy of a recurring task on its next occurrence, or None."""
    rule = RecurrenceRule.from_dict(task.recurrence)
    if rule is None:
        return None
    next_date = next_occurrence(rule, task.scheduled_date)
    if next_date is None:
        return None

    return Task(
        user_id=task.user_id,
        study_plan_id=task.study_plan_id,
        title=task.title,
        description=task.description,
        subject=task.subject,
        topic=task.topic,
        kind=task.kind,
        priority=task.priority,
        difficulty=task.difficulty,
        status=TaskStatus.PENDING.value,
        scheduled_date=next_date,
        scheduled_start=task.scheduled_start,
        scheduled_end=task.scheduled_end,
        estimated_duration=task.estimated_duration,
        actual_duration=0,
        completion_percentage=0,
        recurrence=dict(task.recurrence or {}),
        tags=list(task.tags or []),
        color=task.color,
        ai_generated=task.ai_generated,
        pomodoro_sessions=[],
        reminders=[],
    )
