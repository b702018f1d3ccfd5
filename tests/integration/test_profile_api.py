"""Profile and gamification read endpoints under /api/v1/users/me."""

from datetime import datetime, timedelta, timezone

from httpx import AsyncClient


class TestProfile:
    async def test_get_defaults(self, authed_client: AsyncClient):
        response = await authed_client.get("/api/v1/users/me")
        assert response.status_code == 200
        data = response.json()
        assert data["preferences"] == {
            "daily_study_hours": 4,
            "preferred_study_time": "evening",
            "session_minutes": 25,
            "break_minutes": 15,
        }
        assert data["subjects"] == []
        assert data["settings"] == {}

    async def test_update_merges_settings(self, authed_client: AsyncClient):
        await authed_client.put(
            "/api/v1/users/me",
            json={"settings": {"notifications": {"email": True, "push": False}, "theme": "dark"}},
        )
        response = await authed_client.put(
            "/api/v1/users/me",
            json={
                "name": "Renamed Student",
                "preferences": {"session_minutes": 50},
                "subjects": [{"name": "Physics", "difficulty": "hard", "priority": 8}],
                "settings": {"notifications": {"push": True}},
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Renamed Student"
        assert data["preferences"]["session_minutes"] == 50
        assert data["preferences"]["break_minutes"] == 15
        assert data["subjects"] == [{"name": "Physics", "difficulty": "hard", "priority": 8}]
        assert data["settings"] == {"notifications": {"email": True, "push": True}, "theme": "dark"}

    async def test_invalid_preferences(self, authed_client: AsyncClient):
        response = await authed_client.put("/api/v1/users/me", json={"preferences": {"preferred_study_time": "noon"}})
        assert response.status_code == 422


class TestGamificationReads:
    async def test_fresh_account(self, authed_client: AsyncClient):
        data = (await authed_client.get("/api/v1/users/me/gamification")).json()
        assert data["total_points"] == 0
        assert data["level"] == 1
        assert data["points_to_next_level"] == 1000
        assert data["streak"] == {"current": 0, "longest": 0, "last_study_date": None}
        assert data["badges"] == []

    async def test_points_history(self, authed_client: AsyncClient):
        tomorrow = (datetime.now(timezone.utc).date() + timedelta(days=1)).isoformat()
        for n in range(3):
            task = (
                await authed_client.post(
                    "/api/v1/tasks",
                    json={
                        "title": f"Task {n}",
                        "subject": "Maths",
                        "scheduled_date": tomorrow,
                        "scheduled_start": "09:00",
                        "scheduled_end": "10:00",
                        "estimated_duration": 60,
                    },
                )
            ).json()
            await authed_client.post(f"/api/v1/tasks/{task['id']}/complete")

        page = (
            await authed_client.get("/api/v1/users/me/points/history", params={"page": 1, "per_page": 2})
        ).json()
        assert page["total"] == 3
        assert page["pages"] == 2
        assert len(page["entries"]) == 2
        assert all(e["amount"] == 25 and e["source"] == "task" for e in page["entries"])

    async def test_no_badges_yet(self, authed_client: AsyncClient):
        assert (await authed_client.get("/api/v1/users/me/badges")).json() == []
