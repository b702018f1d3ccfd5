"""Task status state machine and overdue evaluation.

    pending ──> in-progress ──> completed
       │  ^          │
       v  │          └──────> cancelled
    overdue ─────────────────> completed | cancelled

Completed and cancelled are terminal. ``pending -> overdue`` is evaluated
lazily on read and save, never by a background job.
"""

from __future__ import annotations

import enum
from datetime import datetime, time, timezone

from studyplanner.clock import utcnow
from studyplanner.db.models import Task


class TaskStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    OVERDUE = "overdue"


TERMINAL_STATUSES = frozenset({TaskStatus.COMPLETED.value, TaskStatus.CANCELLED.value})

# Reached only through the clock (overdue) or a pomodoro start (in-progress)
SYSTEM_STATUSES = frozenset({TaskStatus.OVERDUE.value, TaskStatus.IN_PROGRESS.value})

_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset(
        {TaskStatus.OVERDUE, TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED, TaskStatus.CANCELLED}
    ),
    TaskStatus.OVERDUE: frozenset({TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED, TaskStatus.CANCELLED}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.COMPLETED, TaskStatus.CANCELLED}),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.CANCELLED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    """Whether ``current -> target`` is a legal status change."""
    try:
        return TaskStatus(target) in _TRANSITIONS[TaskStatus(current)]
    except ValueError:
        return False


def can_request(current: str, target: str) -> bool:
    """Whether a client may ask for ``current -> target`` directly."""
    if target == current:
        return True
    return target not in SYSTEM_STATUSES and can_transition(current, target)


def is_terminal(task: Task) -> bool:
    return task.status in TERMINAL_STATUSES


def parse_time_of_day(value: str) -> time:
    """Parse an ``HH:MM`` string."""
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def deadline(task: Task) -> datetime:
    """Scheduled date combined with the scheduled end time, in UTC."""
    return datetime.combine(task.scheduled_date, parse_time_of_day(task.scheduled_end), tzinfo=timezone.utc)


def is_overdue(task: Task, now: datetime | None = None) -> bool:
    """True if the task is still open and its scheduled end has passed."""
    if task.status not in (TaskStatus.PENDING, TaskStatus.OVERDUE):
        return False
    return (now or utcnow()) > deadline(task)


def refresh_overdue(task: Task, now: datetime | None = None) -> bool:
    """Move a pending task past its deadline to overdue. Returns True if changed."""
    if task.status == TaskStatus.PENDING and is_overdue(task, now):
        task.status = TaskStatus.OVERDUE.value
        return True
    return False


def complete_task(
    task: Task,
    notes: str | None = None,
    rating: int | None = None,
    now: datetime | None = None,
) -> bool:
    """Mark a task completed. Returns False if the task is already terminal."""
    if not can_transition(task.status, TaskStatus.COMPLETED):
        return False
    task.status = TaskStatus.COMPLETED.value
    task.completion_percentage = 100
    task.completed_at = now or utcnow()
    if notes is not None:
        task.completion_notes = notes
    if rating is not None:
        task.completion_rating = rating
    return True


def cancel_task(task: Task) -> bool:
    """Cancel a task. Returns False if the task is already terminal."""
    if not can_transition(task.status, TaskStatus.CANCELLED):
        return False
    task.status = TaskStatus.CANCELLED.value
    return True
