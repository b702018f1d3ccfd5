"""Focus timer pause, resume, and completion."""

from datetime import datetime, timedelta, timezone

from studyplanner.db.models import TimerSession
from studyplanner.timer.service import complete, pause, resume

START = datetime(2026, 3, 10, 9, 0, 0, tzinfo=timezone.utc)


def _session(**kwargs) -> TimerSession:
    defaults = {
        "user_id": 1,
        "kind": "pomodoro",
        "duration": 25,
        "start_time": START,
        "completed": False,
        "paused": False,
        "paused_minutes": 0,
    }
    defaults.update(kwargs)
    return TimerSession(**defaults)


class TestPauseResume:
    def test_pause_then_resume_accumulates(self):
        session = _session()
        assert pause(session, START + timedelta(minutes=5)) is True
        assert session.paused is True
        assert resume(session, START + timedelta(minutes=8, seconds=30)) is True
        assert session.paused is False
        assert session.paused_at is None
        assert session.paused_minutes == 3.5

    def test_double_pause_rejected(self):
        session = _session()
        pause(session, START)
        assert pause(session, START) is False

    def test_resume_running_rejected(self):
        assert resume(_session(), START) is False

    def test_completed_rejects_pause(self):
        assert pause(_session(completed=True), START) is False


class TestComplete:
    def test_defaults_to_planned_duration(self):
        session = _session()
        end = START + timedelta(minutes=25)
        assert complete(session, now=end) is True
        assert session.completed is True
        assert session.end_time == end
        assert session.actual_duration == 25

    def test_explicit_actual_duration(self):
        session = _session()
        complete(session, 18, START + timedelta(minutes=20))
        assert session.actual_duration == 18

    def test_completing_paused_session_closes_pause(self):
        session = _session()
        pause(session, START + timedelta(minutes=10))
        complete(session, now=START + timedelta(minutes=12))
        assert session.paused is False
        assert session.paused_minutes == 2

    def test_already_completed(self):
        session = _session()
        complete(session, now=START)
        assert complete(session, now=START) is False
