"""Liveness, readiness, and version probes."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from studyplanner.config import get_settings
from studyplanner.database import get_session
from studyplanner.redis_client import redis_status

router = APIRouter()

_HEALTHY = frozenset({"ok", "not configured"})


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """Database and Redis checks. An unconfigured Redis does not degrade readiness."""
    try:
        await db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as exc:
        database = f"error: {exc}"

    checks = {"database": database, "redis": await redis_status()}
    return {"status": "ready" if set(checks.values()) <= _HEALTHY else "degraded", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {"version": settings.app_version, "environment": settings.environment}
