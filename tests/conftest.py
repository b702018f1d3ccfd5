"""Shared test fixtures."""

from __future__ import annotations

import os
import tempfile
from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession


def _ensure_test_keys() -> tuple[str, str]:
    """Generate an RSA key pair for JWT signing in a temp directory."""
    tmpdir = Path(tempfile.mkdtemp(prefix="sp_test_keys_"))
    private_path = tmpdir / "jwt_private.pem"
    public_path = tmpdir / "jwt_public.pem"

    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_path.write_bytes(
        key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    public_path.write_bytes(
        key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )
    return str(private_path), str(public_path)


_PRIVATE_KEY, _PUBLIC_KEY = _ensure_test_keys()
os.environ["SP_JWT_PRIVATE_KEY_PATH"] = _PRIVATE_KEY
os.environ["SP_JWT_PUBLIC_KEY_PATH"] = _PUBLIC_KEY
os.environ["SP_LOG_FORMAT"] = "console"
os.environ["SP_ENVIRONMENT"] = "test"
os.environ["SP_AI_API_KEY"] = "test-key"

from studyplanner.auth.jwt import reset_keys  # noqa: E402
from studyplanner.config import get_settings  # noqa: E402

get_settings.cache_clear()
reset_keys()

from studyplanner.database import close_db, get_engine, get_session, init_db  # noqa: E402
from studyplanner.db.base import Base  # noqa: E402
from studyplanner.main import create_app  # noqa: E402

TEST_EMAIL = "student@example.com"
TEST_PASSWORD = "SecurePass1"


@pytest_asyncio.fixture
async def database(tmp_path: Path) -> AsyncGenerator[None, None]:
    """Fresh SQLite database file per test with the full schema."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_db()


@pytest_asyncio.fixture
async def app(database: None) -> FastAPI:
    return create_app()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app. Redis is left uninitialized."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for service-level tests and assertions."""
    async for session in get_session():
        yield session
        break


@pytest.fixture
def mock_email_service(monkeypatch):
    """Mock the email service to prevent actual email sending."""
    mock_service = MagicMock()
    mock_service.send_template = AsyncMock(return_value=True)
    mock_service.send_email = AsyncMock(return_value=True)

    monkeypatch.setattr("studyplanner.auth.router.get_email_service", lambda *a, **kw: mock_service)
    return mock_service


@pytest.fixture
def emitter() -> AsyncMock:
    """Recording notification emitter."""
    mock = AsyncMock()
    mock.emit = AsyncMock(return_value=None)
    return mock


async def register(client: AsyncClient, email: str = TEST_EMAIL, name: str = "Test Student") -> dict:
    """Register a user via the API and return the token response."""
    response = await client.post(
        "/api/v1/auth/register",
        json={"name": name, "email": email, "password": TEST_PASSWORD},
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def make_user(client: AsyncClient, mock_email_service):
    """Factory registering extra users. Returns headers for the new user."""

    async def _make(email: str, name: str = "Other Student") -> dict[str, str]:
        data = await register(client, email=email, name=name)
        return {"Authorization": f"Bearer {data['access_token']}"}

    return _make


@pytest_asyncio.fixture
async def registered_user(client: AsyncClient, mock_email_service) -> dict:
    """Register a user via email+password. Returns the token response."""
    return await register(client)


@pytest_asyncio.fixture
async def authed_client(client: AsyncClient, registered_user: dict) -> AsyncClient:
    """Client carrying the registered user's access token."""
    client.headers["Authorization"] = f"Bearer {registered_user['access_token']}"
    return client
