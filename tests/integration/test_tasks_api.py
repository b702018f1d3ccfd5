"""Task endpoints: lifecycle, pomodoro sessions, reminders, and calendar views."""

from datetime import date, datetime, timedelta, timezone

from httpx import AsyncClient

TASKS = "/api/v1/tasks"


def _today() -> date:
    return datetime.now(timezone.utc).date()


def _task_body(**overrides) -> dict:
    body = {
        "title": "Solve problem set 4",
        "subject": "Calculus",
        "kind": "practice",
        "priority": "high",
        "scheduled_date": (_today() + timedelta(days=1)).isoformat(),
        "scheduled_start": "10:00",
        "scheduled_end": "11:30",
        "estimated_duration": 90,
        "tags": ["integrals"],
    }
    body.update(overrides)
    return body


async def _create(client: AsyncClient, **overrides) -> dict:
    response = await client.post(TASKS, json=_task_body(**overrides))
    assert response.status_code == 201, response.text
    return response.json()


class TestTaskCrud:
    async def test_create(self, authed_client: AsyncClient):
        task = await _create(authed_client)
        assert task["status"] == "pending"
        assert task["actual_duration"] == 0
        assert task["pomodoro_sessions"] == []
        assert task["tags"] == ["integrals"]

    async def test_past_task_is_created_overdue(self, authed_client: AsyncClient):
        yesterday = (_today() - timedelta(days=1)).isoformat()
        task = await _create(authed_client, scheduled_date=yesterday, scheduled_end="23:59")
        assert task["status"] == "overdue"

    async def test_invalid_time_format(self, authed_client: AsyncClient):
        response = await authed_client.post(TASKS, json=_task_body(scheduled_start="9am"))
        assert response.status_code == 422

    async def test_unknown_plan(self, authed_client: AsyncClient):
        response = await authed_client.post(TASKS, json=_task_body(study_plan_id=999))
        assert response.status_code == 404

    async def test_list_filters(self, authed_client: AsyncClient):
        await _create(authed_client, subject="Calculus", priority="high")
        await _create(authed_client, subject="Biology", priority="low")

        everything = (await authed_client.get(TASKS)).json()
        assert everything["total"] == 2

        bio = (await authed_client.get(TASKS, params={"subject": "bio"})).json()
        assert [t["subject"] for t in bio["tasks"]] == ["Biology"]

        high = (await authed_client.get(TASKS, params={"priority": "high"})).json()
        assert [t["subject"] for t in high["tasks"]] == ["Calculus"]

    async def test_list_refreshes_overdue(self, authed_client: AsyncClient):
        yesterday = (_today() - timedelta(days=1)).isoformat()
        created = await _create(authed_client)
        await authed_client.put(f"{TASKS}/{created['id']}", json={"scheduled_date": yesterday})

        overdue = (await authed_client.get(TASKS, params={"status": "overdue"})).json()
        assert [t["id"] for t in overdue["tasks"]] == [created["id"]]

    async def test_update_fields(self, authed_client: AsyncClient):
        task = await _create(authed_client)
        response = await authed_client.put(f"{TASKS}/{task['id']}", json={"title": "Problem set 5", "priority": "urgent"})
        assert response.status_code == 200
        assert response.json()["title"] == "Problem set 5"
        assert response.json()["priority"] == "urgent"

    async def test_illegal_status_change(self, authed_client: AsyncClient):
        task = await _create(authed_client)
        await authed_client.post(f"{TASKS}/{task['id']}/cancel")
        response = await authed_client.put(f"{TASKS}/{task['id']}", json={"status": "pending"})
        assert response.status_code == 409

    async def test_overdue_cannot_be_set_before_deadline(self, authed_client: AsyncClient):
        task = await _create(authed_client, scheduled_date=(_today() + timedelta(days=5)).isoformat())

        response = await authed_client.put(f"{TASKS}/{task['id']}", json={"status": "overdue"})
        assert response.status_code == 409
        assert (await authed_client.get(f"{TASKS}/{task['id']}")).json()["status"] == "pending"

    async def test_in_progress_only_via_pomodoro(self, authed_client: AsyncClient):
        task = await _create(authed_client)
        response = await authed_client.put(f"{TASKS}/{task['id']}", json={"status": "in-progress"})
        assert response.status_code == 409
        assert (await authed_client.get(f"{TASKS}/{task['id']}")).json()["status"] == "pending"

    async def test_rejected_status_leaves_other_fields(self, authed_client: AsyncClient):
        task = await _create(authed_client)
        response = await authed_client.put(
            f"{TASKS}/{task['id']}", json={"title": "Renamed", "status": "overdue"}
        )
        assert response.status_code == 409
        assert (await authed_client.get(f"{TASKS}/{task['id']}")).json()["title"] == "Solve problem set 4"

    async def test_unknown_status_value(self, authed_client: AsyncClient):
        task = await _create(authed_client)
        response = await authed_client.put(f"{TASKS}/{task['id']}", json={"status": "archived"})
        assert response.status_code == 422

    async def test_cancel_through_update(self, authed_client: AsyncClient):
        task = await _create(authed_client)
        response = await authed_client.put(f"{TASKS}/{task['id']}", json={"status": "cancelled"})
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

    async def test_days_of_week_out_of_range(self, authed_client: AsyncClient):
        response = await authed_client.post(
            TASKS,
            json=_task_body(recurrence={"enabled": True, "frequency": "weekly", "days_of_week": [1, 7]}),
        )
        assert response.status_code == 422

    async def test_reschedule_overdue_resets_to_pending(self, authed_client: AsyncClient):
        yesterday = (_today() - timedelta(days=1)).isoformat()
        task = await _create(authed_client, scheduled_date=yesterday)
        assert task["status"] == "overdue"

        tomorrow = (_today() + timedelta(days=1)).isoformat()
        response = await authed_client.put(f"{TASKS}/{task['id']}", json={"scheduled_date": tomorrow})
        assert response.json()["status"] == "pending"

    async def test_delete(self, authed_client: AsyncClient):
        task = await _create(authed_client)
        assert (await authed_client.delete(f"{TASKS}/{task['id']}")).json() == {"status": "deleted"}
        assert (await authed_client.get(f"{TASKS}/{task['id']}")).status_code == 404

    async def test_other_users_task_is_hidden(self, authed_client: AsyncClient, make_user):
        task = await _create(authed_client)
        other = await make_user("other@example.com")
        assert (await authed_client.get(f"{TASKS}/{task['id']}", headers=other)).status_code == 404


class TestCompletion:
    async def test_complete_awards_points_and_streak(self, authed_client: AsyncClient):
        task = await _create(authed_client)
        response = await authed_client.post(f"{TASKS}/{task['id']}/complete", json={"notes": "tough", "rating": 4})
        assert response.status_code == 200
        data = response.json()
        assert data["points_awarded"] == 25
        assert data["streak"] == 1
        assert data["level_up"] is False
        assert data["task"]["status"] == "completed"
        assert data["task"]["completion_percentage"] == 100
        assert data["task"]["completion_rating"] == 4
        assert data["next_instance"] is None

        gam = (await authed_client.get("/api/v1/users/me/gamification")).json()
        assert gam["total_points"] == 25
        assert gam["streak"]["current"] == 1

    async def test_second_completion_same_day_keeps_streak(self, authed_client: AsyncClient):
        first = await _create(authed_client)
        second = await _create(authed_client)
        await authed_client.post(f"{TASKS}/{first['id']}/complete")
        data = (await authed_client.post(f"{TASKS}/{second['id']}/complete")).json()
        assert data["streak"] == 1

        gam = (await authed_client.get("/api/v1/users/me/gamification")).json()
        assert gam["total_points"] == 50

    async def test_complete_twice(self, authed_client: AsyncClient):
        task = await _create(authed_client)
        await authed_client.post(f"{TASKS}/{task['id']}/complete")
        response = await authed_client.post(f"{TASKS}/{task['id']}/complete")
        assert response.status_code == 409

    async def test_invalid_rating(self, authed_client: AsyncClient):
        task = await _create(authed_client)
        response = await authed_client.post(f"{TASKS}/{task['id']}/complete", json={"rating": 6})
        assert response.status_code == 422

    async def test_recurring_task_spawns_next(self, authed_client: AsyncClient):
        task = await _create(authed_client, recurrence={"enabled": True, "frequency": "daily", "interval": 2})
        data = (await authed_client.post(f"{TASKS}/{task['id']}/complete")).json()
        nxt = data["next_instance"]
        assert nxt is not None
        assert nxt["status"] == "pending"
        expected = date.fromisoformat(task["scheduled_date"]) + timedelta(days=2)
        assert nxt["scheduled_date"] == expected.isoformat()

    async def test_cancel(self, authed_client: AsyncClient):
        task = await _create(authed_client)
        response = await authed_client.post(f"{TASKS}/{task['id']}/cancel")
        assert response.json()["status"] == "cancelled"
        assert (await authed_client.post(f"{TASKS}/{task['id']}/cancel")).status_code == 409
        assert (await authed_client.post(f"{TASKS}/{task['id']}/complete")).status_code == 409


class TestPomodoro:
    async def test_start_and_complete_session(self, authed_client: AsyncClient):
        task = await _create(authed_client)
        started = await authed_client.post(f"{TASKS}/{task['id']}/start-pomodoro", json={"duration": 30})
        assert started.status_code == 200
        data = started.json()
        assert data["session_index"] == 0
        assert data["session"]["duration"] == 30
        assert data["task"]["status"] == "in-progress"

        done = await authed_client.post(f"{TASKS}/{task['id']}/complete-pomodoro", json={"session_index": 0})
        assert done.status_code == 200
        result = done.json()
        assert result["points_awarded"] == 10
        assert result["task"]["actual_duration"] == 30
        assert result["task"]["pomodoro_sessions"][0]["completed"] is True

    async def test_second_open_session_rejected(self, authed_client: AsyncClient):
        task = await _create(authed_client)
        await authed_client.post(f"{TASKS}/{task['id']}/start-pomodoro")
        response = await authed_client.post(f"{TASKS}/{task['id']}/start-pomodoro")
        assert response.status_code == 409

    async def test_complete_missing_session(self, authed_client: AsyncClient):
        task = await _create(authed_client)
        response = await authed_client.post(f"{TASKS}/{task['id']}/complete-pomodoro", json={"session_index": 3})
        assert response.status_code == 400
        assert (await authed_client.get(f"{TASKS}/{task['id']}")).json()["actual_duration"] == 0

    async def test_start_on_completed_task(self, authed_client: AsyncClient):
        task = await _create(authed_client)
        await authed_client.post(f"{TASKS}/{task['id']}/complete")
        response = await authed_client.post(f"{TASKS}/{task['id']}/start-pomodoro")
        assert response.status_code == 409


class TestReminders:
    async def test_next_reminder(self, authed_client: AsyncClient):
        now = datetime.now(timezone.utc)
        task = await _create(
            authed_client,
            reminders=[
                {"time": (now + timedelta(hours=5)).isoformat(), "message": "later"},
                {"time": (now + timedelta(hours=1)).isoformat(), "message": "soon"},
                {"time": (now - timedelta(hours=1)).isoformat(), "message": "past"},
            ],
        )
        response = await authed_client.get(f"{TASKS}/{task['id']}/next-reminder")
        assert response.status_code == 200
        assert response.json()["reminder"]["message"] == "soon"

    async def test_no_reminder(self, authed_client: AsyncClient):
        task = await _create(authed_client)
        response = await authed_client.get(f"{TASKS}/{task['id']}/next-reminder")
        assert response.json() == {"reminder": None}


class TestCalendar:
    async def test_calendar_day(self, authed_client: AsyncClient):
        day = _today() + timedelta(days=3)
        await _create(authed_client, scheduled_date=day.isoformat(), title="Late", scheduled_start="15:00")
        await _create(authed_client, scheduled_date=day.isoformat(), title="Early", scheduled_start="08:00")
        await _create(authed_client, scheduled_date=(day + timedelta(days=1)).isoformat())

        data = (await authed_client.get(f"{TASKS}/calendar/{day.isoformat()}")).json()
        assert data["day"] == day.isoformat()
        assert [t["title"] for t in data["tasks"]] == ["Early", "Late"]

    async def test_week_view(self, authed_client: AsyncClient):
        start = _today() + timedelta(days=1)
        await _create(authed_client, scheduled_date=start.isoformat())
        await _create(authed_client, scheduled_date=(start + timedelta(days=6)).isoformat())
        await _create(authed_client, scheduled_date=(start + timedelta(days=7)).isoformat())

        data = (await authed_client.get(f"{TASKS}/week/{start.isoformat()}")).json()
        assert data["end_date"] == (start + timedelta(days=6)).isoformat()
        assert len(data["days"]) == 7
        assert len(data["days"][start.isoformat()]) == 1
        assert len(data["days"][(start + timedelta(days=6)).isoformat()]) == 1
        assert sum(len(tasks) for tasks in data["days"].values()) == 2
