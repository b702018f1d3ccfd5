"""Registration, login, token refresh, and the email token flows."""

from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlparse

import jwt
import pytest
from httpx import AsyncClient

from studyplanner.auth.google import GoogleAuthError, GoogleIdentity
from studyplanner.auth.jwt import create_refresh_token, verify_token

EMAIL = "student@example.com"
PASSWORD = "SecurePass1"


def _token_from_email(mock_email_service, template: str) -> str:
    call = next(c for c in mock_email_service.send_template.call_args_list if c.kwargs["template_name"] == template)
    url = next(v for v in call.kwargs["context"].values() if isinstance(v, str) and v.startswith("http"))
    return parse_qs(urlparse(url).query)["token"][0]


class TestRegistration:
    async def test_register_returns_tokens(self, client: AsyncClient, mock_email_service):
        response = await client.post(
            "/api/v1/auth/register",
            json={"name": "Grace", "email": "Grace@Example.com", "password": PASSWORD},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["email"] == "grace@example.com"
        assert data["user"]["auth_method"] == "email"
        assert data["user"]["email_verified"] is False
        assert verify_token(data["access_token"])["email"] == "grace@example.com"

        mock_email_service.send_template.assert_awaited_once()
        assert mock_email_service.send_template.call_args.kwargs["template_name"] == "welcome"

    async def test_duplicate_email(self, client: AsyncClient, registered_user):
        response = await client.post(
            "/api/v1/auth/register",
            json={"name": "Again", "email": EMAIL, "password": PASSWORD},
        )
        assert response.status_code == 409

    async def test_short_password(self, client: AsyncClient, mock_email_service):
        response = await client.post(
            "/api/v1/auth/register",
            json={"name": "Weak", "email": "weak@example.com", "password": "abc"},
        )
        assert response.status_code == 400
        assert "at least" in response.json()["detail"]

    async def test_invalid_email(self, client: AsyncClient, mock_email_service):
        response = await client.post(
            "/api/v1/auth/register",
            json={"name": "Bad", "email": "not-an-email", "password": PASSWORD},
        )
        assert response.status_code == 422

    async def test_email_failure_does_not_fail_registration(self, client: AsyncClient, mock_email_service):
        mock_email_service.send_template.side_effect = RuntimeError("smtp down")
        response = await client.post(
            "/api/v1/auth/register",
            json={"name": "Lin", "email": "lin@example.com", "password": PASSWORD},
        )
        assert response.status_code == 201


class TestLogin:
    async def test_login(self, client: AsyncClient, registered_user):
        response = await client.post("/api/v1/auth/login", json={"email": EMAIL.upper(), "password": PASSWORD})
        assert response.status_code == 200
        assert response.json()["user"]["id"] == registered_user["user"]["id"]

    async def test_wrong_password(self, client: AsyncClient, registered_user):
        response = await client.post("/api/v1/auth/login", json={"email": EMAIL, "password": "WrongPass1"})
        assert response.status_code == 401

    async def test_unknown_user(self, client: AsyncClient, mock_email_service):
        response = await client.post("/api/v1/auth/login", json={"email": "nobody@example.com", "password": PASSWORD})
        assert response.status_code == 401


class TestTokens:
    async def test_me(self, authed_client: AsyncClient):
        response = await authed_client.get("/api/v1/auth/me")
        assert response.status_code == 200
        assert response.json()["email"] == EMAIL

    async def test_me_requires_auth(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/me")
        assert response.status_code in (401, 403)

    async def test_garbage_token(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    async def test_refresh(self, client: AsyncClient, registered_user):
        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": registered_user["refresh_token"]})
        assert response.status_code == 200
        assert verify_token(response.json()["access_token"])["sub"] == str(registered_user["user"]["id"])

    async def test_access_token_cannot_refresh(self, client: AsyncClient, registered_user):
        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": registered_user["access_token"]})
        assert response.status_code == 401

    async def test_refresh_token_cannot_authenticate(self, client: AsyncClient, registered_user):
        response = await client.get(
            "/api/v1/auth/me",
            headers={"Authorization": f"Bearer {registered_user['refresh_token']}"},
        )
        assert response.status_code == 401

    async def test_refresh_for_deleted_user(self, client: AsyncClient, mock_email_service):
        response = await client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": create_refresh_token(9999, "ghost@example.com")},
        )
        assert response.status_code == 401

    def test_wrong_type_rejected(self):
        token = create_refresh_token(1, "a@example.com")
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(token, expected_type="access")


class TestEmailVerification:
    async def test_verify_email(self, authed_client: AsyncClient, mock_email_service):
        token = _token_from_email(mock_email_service, "welcome")
        response = await authed_client.post("/api/v1/auth/verify-email", json={"token": token})
        assert response.status_code == 200
        assert response.json() == {"status": "email_verified"}

        me = await authed_client.get("/api/v1/auth/me")
        assert me.json()["email_verified"] is True

        again = await authed_client.post("/api/v1/auth/verify-email", json={"token": token})
        assert again.status_code == 400

    async def test_unknown_token(self, client: AsyncClient, mock_email_service):
        response = await client.post("/api/v1/auth/verify-email", json={"token": "nope"})
        assert response.status_code == 400


class TestPasswordReset:
    async def test_reset_flow(self, client: AsyncClient, registered_user, mock_email_service):
        response = await client.post("/api/v1/auth/forgot-password", json={"email": EMAIL})
        assert response.status_code == 200
        token = _token_from_email(mock_email_service, "password_reset")

        response = await client.post(
            "/api/v1/auth/reset-password",
            json={"token": token, "new_password": "BrandNew99"},
        )
        assert response.status_code == 200

        old = await client.post("/api/v1/auth/login", json={"email": EMAIL, "password": PASSWORD})
        assert old.status_code == 401
        new = await client.post("/api/v1/auth/login", json={"email": EMAIL, "password": "BrandNew99"})
        assert new.status_code == 200

        reused = await client.post(
            "/api/v1/auth/reset-password",
            json={"token": token, "new_password": "Another99"},
        )
        assert reused.status_code == 400

    async def test_unknown_email_gives_same_answer(self, client: AsyncClient, mock_email_service):
        response = await client.post("/api/v1/auth/forgot-password", json={"email": "nobody@example.com"})
        assert response.status_code == 200
        mock_email_service.send_template.assert_not_awaited()


class TestGoogleLogin:
    async def test_creates_user(self, client: AsyncClient, mock_email_service):
        identity = GoogleIdentity(google_id="g-123", email="gmail@example.com", name="G User")
        with patch("studyplanner.auth.router.verify_google_token", AsyncMock(return_value=identity)):
            response = await client.post("/api/v1/auth/google", json={"id_token": "tok"})
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["auth_method"] == "google"
        assert user["email_verified"] is True

    async def test_links_existing_email_account(self, client: AsyncClient, registered_user):
        identity = GoogleIdentity(google_id="g-456", email=EMAIL, name="Test Student")
        with patch("studyplanner.auth.router.verify_google_token", AsyncMock(return_value=identity)):
            response = await client.post("/api/v1/auth/google", json={"id_token": "tok"})
        assert response.status_code == 200
        assert response.json()["user"]["id"] == registered_user["user"]["id"]

    async def test_invalid_google_token(self, client: AsyncClient, mock_email_service):
        failing = AsyncMock(side_effect=GoogleAuthError("Invalid Google token"))
        with patch("studyplanner.auth.router.verify_google_token", failing):
            response = await client.post("/api/v1/auth/google", json={"id_token": "bad"})
        assert response.status_code == 401
