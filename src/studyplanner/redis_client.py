"""Process-wide Redis client.

Redis is optional. When no URL is configured the client stays unset, the rate
limiter lets every request through, and notifications go nowhere.
"""

import redis.asyncio as redis

_client: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 50) -> None:
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
    )


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis_or_none() -> redis.Redis | None:
    return _client


def get_redis() -> redis.Redis:
    """The initialized client.

    Raises:
        RuntimeError: If ``init_redis`` has not run.
    """
    if _client is None:
        msg = "Redis is not configured"
        raise RuntimeError(msg)
    return _client


async def redis_status() -> str:
    """``ok``, ``not configured``, or ``error: ...`` for readiness checks."""
    if _client is None:
        return "not configured"
    try:
        await _client.ping()
    except redis.RedisError as exc:
        return f"error: {exc}"
    return "ok"
