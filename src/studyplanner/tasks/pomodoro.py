"""Pomodoro sessions attached to a task, and reminder lookup."""

from __future__ import annotations

from datetime import datetime

from studyplanner.clock import as_utc, utcnow
from studyplanner.db.models import PomodoroSession, Task, TaskReminder
from studyplanner.tasks.schedule import TaskStatus, can_transition, is_terminal

DEFAULT_SESSION_MINUTES = 25
SESSION_KINDS = ("work", "short-break", "long-break")


def open_session(task: Task) -> PomodoroSession | None:
    """The unfinished session of ``task``, if any."""
    for session in task.pomodoro_sessions:
        if not session.completed:
            return session
    return None


def start_session(
    task: Task,
    duration: int = DEFAULT_SESSION_MINUTES,
    kind: str = "work",
    now: datetime | None = None,
) -> PomodoroSession | None:
    """Start a session and move the task to in-progress.

    Only one session may be open per task. Returns None if the task is
    terminal or a session is already running.
    """
    if is_terminal(task) or open_session(task) is not None:
        return None

    session = PomodoroSession(
        start_time=now or utcnow(),
        duration=duration,
        completed=False,
        kind=kind,
    )
    task.pomodoro_sessions.append(session)
    if can_transition(task.status, TaskStatus.IN_PROGRESS):
        task.status = TaskStatus.IN_PROGRESS.value
    return session


def complete_session(task: Task, index: int, now: datetime | None = None) -> bool:
    """Finish the session at ``index`` and add its duration to the task.

    Returns False, changing nothing, if there is no such session or it was
    already completed.
    """
    if index < 0 or index >= len(task.pomodoro_sessions):
        return False
    session = task.pomodoro_sessions[index]
    if session.completed:
        return False

    session.end_time = now or utcnow()
    session.completed = True
    task.actual_duration = (task.actual_duration or 0) + session.duration
    return True


def total_study_time(task: Task) -> int:
    """Minutes spent in completed work sessions."""
    return sum(s.duration for s in task.pomodoro_sessions if s.completed and s.kind == "work")


def next_reminder(task: Task, now: datetime | None = None) -> TaskReminder | None:
    """Earliest unsent reminder still in the future."""
    now = now or utcnow()
    upcoming = [r for r in task.reminders if not r.sent and as_utc(r.time) > now]
    return min(upcoming, key=lambda r: as_utc(r.time), default=None)
