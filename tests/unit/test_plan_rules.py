"""Topic completion, weekly hours, milestones, and insight bounding."""

from datetime import datetime, timedelta, timezone

from studyplanner.db.models import Milestone, PlanInsight, PlanTopic, StudyPlan, WeeklyGoal
from studyplanner.planning.plan_rules import (
    MAX_INSIGHTS,
    add_insight,
    check_milestones,
    complete_topic,
    log_study_hours,
    weekly_efficiency,
)

NOW = datetime(2026, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


def _plan(topics: int = 4, **kwargs) -> StudyPlan:
    defaults = {
        "exam_date": NOW + timedelta(days=20),
        "created_at": NOW - timedelta(days=1),
        "hours_studied": 0,
        "percentage_complete": 0,
        "topics": [PlanTopic(name=f"Topic {i}", completed=False, estimated_hours=3) for i in range(topics)],
        "weekly_goals": [],
        "milestones": [],
        "insights": [],
    }
    defaults.update(kwargs)
    return StudyPlan(**defaults)


def _insight(n: int) -> PlanInsight:
    return PlanInsight(kind="tip", message=f"insight {n}", priority="medium", dismissed=False, created_at=NOW)


class TestCompleteTopic:
    def test_completes_and_recomputes(self):
        plan = _plan()
        assert complete_topic(plan, 0, NOW) is True
        assert plan.topics[0].completed is True
        assert plan.topics[0].completed_at == NOW
        assert plan.topics_completed == 1
        assert plan.percentage_complete == 25

    def test_already_completed(self):
        plan = _plan()
        complete_topic(plan, 1, NOW)
        assert complete_topic(plan, 1, NOW) is False
        assert plan.topics_completed == 1

    def test_index_out_of_range(self):
        plan = _plan()
        assert complete_topic(plan, 4, NOW) is False
        assert complete_topic(plan, -1, NOW) is False
        assert all(not t.completed for t in plan.topics)


class TestInsights:
    def test_twenty_first_insight_drops_oldest(self):
        plan = _plan()
        for n in range(1, 22):
            add_insight(plan, _insight(n))
        messages = [i.message for i in plan.insights]
        assert len(messages) == MAX_INSIGHTS == 20
        assert "insight 1" not in messages
        assert messages[0] == "insight 2"
        assert messages[-1] == "insight 21"

    def test_under_limit_keeps_all(self):
        plan = _plan()
        for n in range(5):
            add_insight(plan, _insight(n))
        assert len(plan.insights) == 5


class TestWeeklyHours:
    def test_logs_hours_on_goal_and_plan(self):
        goal = WeeklyGoal(week_number=1, target_hours=10, actual_hours=0, completed=False)
        plan = _plan(weekly_goals=[goal])
        result = log_study_hours(plan, 1, 4, NOW)
        assert result is goal
        assert goal.actual_hours == 4
        assert goal.completed is False
        assert plan.hours_studied == 4

    def test_reaching_target_completes_goal(self):
        goal = WeeklyGoal(week_number=2, target_hours=5, actual_hours=3, completed=False)
        plan = _plan(weekly_goals=[goal])
        log_study_hours(plan, 2, 2, NOW)
        assert goal.completed is True

    def test_unknown_week(self):
        plan = _plan(weekly_goals=[WeeklyGoal(week_number=1, target_hours=5, actual_hours=0, completed=False)])
        assert log_study_hours(plan, 3, 2, NOW) is None
        assert plan.hours_studied == 0

    def test_efficiency(self):
        assert weekly_efficiency(WeeklyGoal(week_number=1, target_hours=8, actual_hours=6)) == 75
        assert weekly_efficiency(WeeklyGoal(week_number=1, target_hours=0, actual_hours=6)) == 0


class TestMilestones:
    def test_reached_milestones_complete_once(self):
        half = Milestone(title="Halfway", target_percentage=50, completed=False)
        done = Milestone(title="Done", target_percentage=100, completed=False)
        plan = _plan(milestones=[half, done], percentage_complete=50)

        reached = check_milestones(plan, NOW)
        assert [m.title for m in reached] == ["Halfway"]
        assert half.completed is True
        assert half.completed_at == NOW
        assert done.completed is False

        assert check_milestones(plan, NOW) == []
