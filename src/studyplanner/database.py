"""Process-wide async engine and the per-request session dependency."""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

_engine: AsyncEngine | None = None
_sessions: async_sessionmaker[AsyncSession] | None = None

_POSTGRES_OPTIONS: dict[str, Any] = {
    "pool_size": 20,
    "max_overflow": 10,
    "pool_pre_ping": True,
}


def _engine_options(url: str) -> dict[str, Any]:
    # SQLite (tests, local runs) rejects pool sizing
    if make_url(url).get_backend_name() == "sqlite":
        return {}
    return _POSTGRES_OPTIONS


async def init_db(url: str) -> None:
    global _engine, _sessions  # noqa: PLW0603
    _engine = create_async_engine(url, **_engine_options(url))
    _sessions = async_sessionmaker(_engine, expire_on_commit=False)


async def close_db() -> None:
    global _engine, _sessions  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _sessions = None


def get_engine() -> AsyncEngine:
    if _engine is None:
        msg = "init_db() has not been called"
        raise RuntimeError(msg)
    return _engine


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, closed afterwards."""
    if _sessions is None:
        msg = "init_db() has not been called"
        raise RuntimeError(msg)
    async with _sessions() as session:
        yield session
