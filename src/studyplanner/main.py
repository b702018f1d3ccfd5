"""FastAPI application factory."""

import asyncio
import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from studyplanner.ai.router import router as ai_router
from studyplanner.analytics.router import router as analytics_router
from studyplanner.auth.router import router as auth_router
from studyplanner.config import get_settings
from studyplanner.database import close_db, init_db
from studyplanner.gamification.router import router as gamification_router
from studyplanner.health.router import router as health_router
from studyplanner.middleware import setup_middleware
from studyplanner.notes.router import router as notes_router
from studyplanner.plans.router import router as plans_router
from studyplanner.redis_client import close_redis, get_redis, init_redis
from studyplanner.tasks.router import router as tasks_router
from studyplanner.timer.router import router as timer_router
from studyplanner.users.router import router as users_router
from studyplanner.ws.bridge import PubSubBridge
from studyplanner.ws.router import router as ws_router

logger = structlog.get_logger()

API_ROUTERS = (
    auth_router,
    users_router,
    gamification_router,
    plans_router,
    tasks_router,
    timer_router,
    notes_router,
    analytics_router,
    ai_router,
)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the database, and Redis plus the notification bridge when configured."""
    settings = get_settings()
    await init_db(settings.database_url)

    bridge: PubSubBridge | None = None
    bridge_task: asyncio.Task[None] | None = None
    if settings.redis_url:
        await init_redis(settings.redis_url)
        bridge = PubSubBridge(get_redis())
        bridge_task = asyncio.create_task(bridge.start())
    else:
        logger.warning("redis_not_configured", effect="rate limiting and live notifications disabled")

    yield

    if bridge is not None and bridge_task is not None:
        await bridge.stop()
        bridge_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await bridge_task
    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Study Planner API",
        description="Study plans, scheduled tasks, focus sessions, and progress rewards",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    for router in API_ROUTERS:
        app.include_router(router)
    app.include_router(ws_router)
    return app


app = create_app()
