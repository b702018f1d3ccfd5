"""Focus timer endpoints."""

from datetime import datetime, timedelta, timezone

from httpx import AsyncClient

TIMER = "/api/v1/timer"


async def _start(client: AsyncClient, **body) -> dict:
    response = await client.post(f"{TIMER}/start", json=body)
    assert response.status_code == 201, response.text
    return response.json()


class TestTimerLifecycle:
    async def test_start_defaults(self, authed_client: AsyncClient):
        session = await _start(authed_client)
        assert session["kind"] == "pomodoro"
        assert session["duration"] == 25
        assert session["completed"] is False
        assert session["paused"] is False
        assert session["paused_minutes"] == 0

    async def test_start_for_unknown_task(self, authed_client: AsyncClient):
        response = await authed_client.post(f"{TIMER}/start", json={"task_id": 12345})
        assert response.status_code == 404

    async def test_pause_and_resume(self, authed_client: AsyncClient):
        session = await _start(authed_client, kind="custom", duration=50)
        url = f"{TIMER}/{session['id']}"

        paused = await authed_client.post(f"{url}/pause")
        assert paused.status_code == 200
        assert paused.json()["paused"] is True

        again = await authed_client.post(f"{url}/pause")
        assert again.status_code == 409
        assert again.json()["detail"] == "Timer is not running"

        resumed = await authed_client.post(f"{url}/resume")
        assert resumed.status_code == 200
        assert resumed.json()["paused"] is False
        assert resumed.json()["paused_minutes"] >= 0

        assert (await authed_client.post(f"{url}/resume")).status_code == 409

    async def test_complete_with_actual_duration(self, authed_client: AsyncClient):
        session = await _start(authed_client)
        response = await authed_client.post(f"{TIMER}/{session['id']}/complete", json={"actual_duration": 18})
        assert response.status_code == 200
        data = response.json()
        assert data["completed"] is True
        assert data["actual_duration"] == 18
        assert data["end_time"] is not None

    async def test_complete_defaults_to_planned_duration(self, authed_client: AsyncClient):
        session = await _start(authed_client, duration=40)
        data = (await authed_client.post(f"{TIMER}/{session['id']}/complete")).json()
        assert data["actual_duration"] == 40

    async def test_complete_paused_timer(self, authed_client: AsyncClient):
        session = await _start(authed_client)
        await authed_client.post(f"{TIMER}/{session['id']}/pause")
        data = (await authed_client.post(f"{TIMER}/{session['id']}/complete")).json()
        assert data["completed"] is True
        assert data["paused"] is False

    async def test_completed_timer_is_frozen(self, authed_client: AsyncClient):
        session = await _start(authed_client)
        url = f"{TIMER}/{session['id']}"
        await authed_client.post(f"{url}/complete")
        assert (await authed_client.post(f"{url}/complete")).status_code == 409
        assert (await authed_client.post(f"{url}/pause")).status_code == 409

    async def test_unknown_session(self, authed_client: AsyncClient):
        assert (await authed_client.post(f"{TIMER}/999/pause")).status_code == 404

    async def test_other_users_session(self, authed_client: AsyncClient, make_user):
        session = await _start(authed_client)
        other = await make_user("other@example.com")
        response = await authed_client.post(f"{TIMER}/{session['id']}/pause", headers=other)
        assert response.status_code == 404


class TestTimerSessions:
    async def test_list_newest_first(self, authed_client: AsyncClient):
        first = await _start(authed_client)
        second = await _start(authed_client, kind="break", duration=5)
        data = (await authed_client.get(f"{TIMER}/sessions")).json()
        assert data["total"] == 2
        assert [s["id"] for s in data["sessions"]] == [second["id"], first["id"]]

    async def test_date_filter(self, authed_client: AsyncClient):
        await _start(authed_client)
        today = datetime.now(timezone.utc).date()

        on_today = (await authed_client.get(f"{TIMER}/sessions", params={"date": today.isoformat()})).json()
        assert on_today["total"] == 1

        yesterday = (today - timedelta(days=1)).isoformat()
        on_yesterday = (await authed_client.get(f"{TIMER}/sessions", params={"date": yesterday})).json()
        assert on_yesterday["total"] == 0
