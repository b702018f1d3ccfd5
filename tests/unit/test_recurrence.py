"""Recurring task rules."""

from datetime import date

from studyplanner.db.models import Task
from studyplanner.tasks.recurrence import RecurrenceRule, next_occurrence, spawn_next_instance


class TestRuleParsing:
    def test_disabled_rule(self):
        assert RecurrenceRule.from_dict({"enabled": False, "frequency": "daily"}) is None
        assert RecurrenceRule.from_dict(None) is None

    def test_unknown_frequency(self):
        assert RecurrenceRule.from_dict({"enabled": True, "frequency": "hourly"}) is None

    def test_parses_end_date(self):
        rule = RecurrenceRule.from_dict(
            {"enabled": True, "frequency": "weekly", "interval": 2, "end_date": "2026-06-01", "days_of_week": [3, 1, 1]}
        )
        assert rule == RecurrenceRule("weekly", 2, date(2026, 6, 1), (1, 3))


class TestNextOccurrence:
    def test_daily(self):
        assert next_occurrence(RecurrenceRule("daily", 3), date(2026, 3, 10)) == date(2026, 3, 13)

    def test_weekly_without_days(self):
        assert next_occurrence(RecurrenceRule("weekly"), date(2026, 3, 10)) == date(2026, 3, 17)

    def test_weekly_on_days(self):
        # 2026-03-10 is a Tuesday; next Thursday (4) is 03-12, next Monday (1) is 03-16
        rule = RecurrenceRule("weekly", days_of_week=(1, 4))
        assert next_occurrence(rule, date(2026, 3, 10)) == date(2026, 3, 12)
        assert next_occurrence(rule, date(2026, 3, 12)) == date(2026, 3, 16)

    def test_biweekly_on_days_skips_week(self):
        # Sunday-start weeks: 03-08..03-14 is the anchor week, 03-15..03-21 is skipped
        rule = RecurrenceRule("weekly", interval=2, days_of_week=(2,))
        assert next_occurrence(rule, date(2026, 3, 10)) == date(2026, 3, 24)

    def test_monthly_clamps_day(self):
        assert next_occurrence(RecurrenceRule("monthly"), date(2026, 1, 31)) == date(2026, 2, 28)
        assert next_occurrence(RecurrenceRule("monthly", 2), date(2026, 11, 15)) == date(2027, 1, 15)

    def test_past_end_date(self):
        rule = RecurrenceRule("daily", end_date=date(2026, 3, 10))
        assert next_occurrence(rule, date(2026, 3, 10)) is None


class TestSpawnNextInstance:
    def _task(self, recurrence):
        return Task(
            user_id=7,
            study_plan_id=None,
            title="Flashcards",
            subject="Spanish",
            kind="review",
            priority="high",
            difficulty="easy",
            status="completed",
            scheduled_date=date(2026, 3, 10),
            scheduled_start="08:00",
            scheduled_end="08:30",
            estimated_duration=30,
            recurrence=recurrence,
            tags=["vocab"],
            color="#10B981",
            ai_generated=False,
        )

    def test_spawns_pending_copy(self):
        task = self._task({"enabled": True, "frequency": "daily", "interval": 1})
        nxt = spawn_next_instance(task)
        assert nxt is not None
        assert nxt.status == "pending"
        assert nxt.scheduled_date == date(2026, 3, 11)
        assert nxt.title == "Flashcards"
        assert nxt.tags == ["vocab"]
        assert nxt.actual_duration == 0
        assert nxt.recurrence == task.recurrence
        assert nxt.pomodoro_sessions == []

    def test_no_recurrence(self):
        assert spawn_next_instance(self._task(None)) is None
