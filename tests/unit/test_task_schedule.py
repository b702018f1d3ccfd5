"""Task status transitions and the overdue rule."""

from datetime import date, datetime, timedelta, timezone

import pytest

from studyplanner.db.models import Task
from studyplanner.tasks.schedule import (
    TaskStatus,
    can_request,
    can_transition,
    cancel_task,
    complete_task,
    deadline,
    is_overdue,
    refresh_overdue,
)

NOW = datetime(2026, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


def _task(status: str = "pending", scheduled: date | None = None, end: str = "23:59") -> Task:
    return Task(
        title="Read chapter 3",
        subject="Biology",
        status=status,
        scheduled_date=scheduled or NOW.date(),
        scheduled_start="09:00",
        scheduled_end=end,
        estimated_duration=60,
        completion_percentage=0,
        pomodoro_sessions=[],
        reminders=[],
    )


class TestTransitions:
    @pytest.mark.parametrize(
        ("current", "target"),
        [
            ("pending", "overdue"),
            ("pending", "in-progress"),
            ("overdue", "in-progress"),
            ("pending", "completed"),
            ("in-progress", "completed"),
            ("overdue", "cancelled"),
        ],
    )
    def test_legal(self, current, target):
        assert can_transition(current, target) is True

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            ("completed", "pending"),
            ("completed", "cancelled"),
            ("cancelled", "in-progress"),
            ("in-progress", "pending"),
            ("in-progress", "overdue"),
        ],
    )
    def test_illegal(self, current, target):
        assert can_transition(current, target) is False

    def test_unknown_status(self):
        assert can_transition("pending", "archived") is False


class TestClientRequests:
    @pytest.mark.parametrize(
        ("current", "target"),
        [("pending", "overdue"), ("pending", "in-progress"), ("overdue", "in-progress")],
    )
    def test_system_statuses_cannot_be_requested(self, current, target):
        assert can_transition(current, target) is True
        assert can_request(current, target) is False

    def test_completion_and_cancellation_can_be_requested(self):
        assert can_request("pending", "completed") is True
        assert can_request("overdue", "cancelled") is True

    def test_unchanged_status_is_accepted(self):
        assert can_request("overdue", "overdue") is True

    def test_terminal_stays_terminal(self):
        assert can_request("completed", "cancelled") is False


class TestOverdue:
    def test_yesterday_pending_is_overdue(self):
        task = _task(scheduled=NOW.date() - timedelta(days=1), end="23:59")
        assert is_overdue(task, NOW) is True

    def test_completed_never_overdue(self):
        task = _task(status="completed", scheduled=NOW.date() - timedelta(days=30))
        assert is_overdue(task, NOW) is False

    def test_today_before_end_is_not_overdue(self):
        assert is_overdue(_task(end="18:00"), NOW) is False

    def test_today_after_end_is_overdue(self):
        assert is_overdue(_task(end="11:30"), NOW) is True

    def test_deadline_combines_date_and_end_in_utc(self):
        task = _task(scheduled=date(2026, 3, 9), end="17:45")
        assert deadline(task) == datetime(2026, 3, 9, 17, 45, tzinfo=timezone.utc)

    def test_refresh_moves_pending_to_overdue(self):
        task = _task(scheduled=NOW.date() - timedelta(days=2))
        assert refresh_overdue(task, NOW) is True
        assert task.status == TaskStatus.OVERDUE
        assert refresh_overdue(task, NOW) is False

    def test_refresh_leaves_in_progress(self):
        task = _task(status="in-progress", scheduled=NOW.date() - timedelta(days=2))
        assert refresh_overdue(task, NOW) is False
        assert task.status == "in-progress"


class TestCompleteAndCancel:
    def test_complete_stamps_task(self):
        task = _task()
        assert complete_task(task, notes="done early", rating=4, now=NOW) is True
        assert task.status == "completed"
        assert task.completion_percentage == 100
        assert task.completed_at == NOW
        assert task.completion_notes == "done early"
        assert task.completion_rating == 4

    def test_complete_overdue_task(self):
        task = _task(status="overdue")
        assert complete_task(task, now=NOW) is True

    def test_terminal_tasks_reject_completion(self):
        assert complete_task(_task(status="completed"), now=NOW) is False
        assert complete_task(_task(status="cancelled"), now=NOW) is False

    def test_cancel(self):
        task = _task(status="in-progress")
        assert cancel_task(task) is True
        assert task.status == "cancelled"
        assert cancel_task(task) is False
