"""Forward notifications published on Redis to connected WebSocket clients.

``RedisNotificationEmitter`` publishes ``{"event": ..., "data": ...}`` on
``ws:user:{id}``. This process listens on all of those channels and relays
each message to that user's sockets as ``{"type": event, "payload": data}``.
"""

import asyncio
import json
from typing import Any

import redis.asyncio as aioredis
import structlog

from studyplanner.ws.manager import manager

logger = structlog.get_logger()

USER_CHANNEL_PATTERN = "ws:user:*"


def _text(value: Any) -> str:  # noqa: ANN401
    return value.decode() if isinstance(value, bytes) else str(value)


def parse_user_id(channel: str) -> int | None:
    _, _, suffix = channel.rpartition(":")
    return int(suffix) if suffix.isdigit() else None


class PubSubBridge:
    def __init__(self, redis_client: aioredis.Redis) -> None:
        self.redis = redis_client
        self._stopping = asyncio.Event()

    async def handle_message(self, message: dict) -> int:
        """Relay one pub/sub message; returns how many sockets received it."""
        channel = _text(message.get("channel", ""))
        user_id = parse_user_id(channel)
        if user_id is None:
            logger.warning("ws_bridge_bad_channel", channel=channel)
            return 0

        try:
            event = json.loads(_text(message.get("data", b"")))
        except (json.JSONDecodeError, UnicodeDecodeError):
            event = None
        if not isinstance(event, dict):
            logger.warning("ws_bridge_bad_payload", channel=channel)
            return 0

        name = event.get("event", "notification")
        delivered = await manager.send_to_user(user_id, {"type": name, "payload": event.get("data", event)})
        logger.debug("ws_bridge_relayed", user_id=user_id, event=name, delivered=delivered)
        return delivered

    async def start(self) -> None:
        """Relay messages until ``stop()`` is called or the task is cancelled."""
        self._stopping.clear()
        pubsub = self.redis.pubsub()
        await pubsub.psubscribe(USER_CHANNEL_PATTERN)
        logger.info("ws_bridge_started", pattern=USER_CHANNEL_PATTERN)
        try:
            while not self._stopping.is_set():
                message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
                if message is not None and message.get("type") == "pmessage":
                    await self.handle_message(message)
        finally:
            await pubsub.punsubscribe()
            await pubsub.aclose()
            logger.info("ws_bridge_stopped")

    async def stop(self) -> None:
        self._stopping.set()
