"""Shared FastAPI dependencies."""

from studyplanner.ai.client import TextGenerationClient
from studyplanner.config import get_settings
from studyplanner.notifications.emitter import (
    NotificationEmitter,
    NullNotificationEmitter,
    RedisNotificationEmitter,
)
from studyplanner.redis_client import get_redis_or_none


def get_emitter() -> NotificationEmitter:
    """Redis-backed emitter, or a no-op one when Redis is not initialized."""
    redis = get_redis_or_none()
    if redis is None:
        return NullNotificationEmitter()
    return RedisNotificationEmitter(redis)


def get_text_client() -> TextGenerationClient:
    """Text generation client built from settings."""
    settings = get_settings()
    return TextGenerationClient(
        base_url=settings.ai_base_url,
        api_key=settings.ai_api_key,
        default_model=settings.ai_model,
        timeout=settings.ai_timeout_seconds,
    )
