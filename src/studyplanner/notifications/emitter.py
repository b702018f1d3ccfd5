"""Fire-and-forget user notifications over Redis pub/sub.

Events are published to ``ws:user:{user_id}`` as ``{"event": ..., "data": ...}``.
The WebSocket bridge pattern-subscribes to ``ws:user:*`` and routes each
message to the user's open connections.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)

TASK_COMPLETED = "task-completed"
TOPIC_COMPLETED = "topic-completed"
POMODORO_STARTED = "pomodoro-started"
POMODORO_COMPLETED = "pomodoro-completed"
TIMER_STARTED = "timer-started"
TIMER_PAUSED = "timer-paused"
TIMER_RESUMED = "timer-resumed"
TIMER_COMPLETED = "timer-completed"
LEVEL_UP = "level-up"
BADGE_EARNED = "badge-earned"


def user_channel(user_id: int) -> str:
    return f"ws:user:{user_id}"


class NotificationEmitter(Protocol):
    """Publishes state changes to a user's connected clients. Never raises."""

    async def emit(self, event: str, user_id: int, data: dict[str, Any]) -> None: ...


class RedisNotificationEmitter:
    """Publishes events on the user's Redis channel."""

    def __init__(self, redis: Any) -> None:  # noqa: ANN401
        self.redis = redis

    async def emit(self, event: str, user_id: int, data: dict[str, Any]) -> None:
        payload = json.dumps({"event": event, "data": data}, default=str)
        try:
            await self.redis.publish(user_channel(user_id), payload)
        except Exception:
            logger.warning("Failed to publish %s via ws:user:%s", event, user_id, exc_info=True)


class NullNotificationEmitter:
    """Drops events. Used when Redis is not configured."""

    async def emit(self, event: str, user_id: int, data: dict[str, Any]) -> None:
        logger.debug("Dropping %s for user %s (no publisher)", event, user_id)
