"""Per-client request limits over a sliding window kept in Redis.

Every request adds a member to ``ratelimit:{ip}`` scored with its arrival
time; members older than the window are trimmed before the set is counted.
Without Redis the limiter lets everything through.
"""

import time
import uuid
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from studyplanner.redis_client import get_redis_or_none

PROBE_PATHS = frozenset({"/health", "/ready"})


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: Any, requests_per_window: int = 100, window_seconds: int = 60) -> None:  # noqa: ANN401
        super().__init__(app)
        self.limit = requests_per_window
        self.window = window_seconds

    async def _hits_in_window(self, redis: Any, client: str) -> int:  # noqa: ANN401
        key = f"ratelimit:{client}"
        now = time.time()
        pipe = redis.pipeline()
        pipe.zremrangebyscore(key, 0, now - self.window)
        pipe.zadd(key, {f"{now}:{uuid.uuid4().hex[:8]}": now})
        pipe.zcard(key)
        pipe.expire(key, self.window + 1)
        _, _, hits, _ = await pipe.execute()
        return int(hits)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        redis = get_redis_or_none()
        if redis is None or request.url.path in PROBE_PATHS:
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        hits = await self._hits_in_window(redis, client)
        limit_headers = {"X-RateLimit-Limit": str(self.limit)}

        if hits > self.limit:
            return JSONResponse(
                status_code=429,
                content={"detail": "Too many requests"},
                headers={**limit_headers, "X-RateLimit-Remaining": "0", "Retry-After": str(self.window)},
            )

        response = await call_next(request)
        response.headers.update({**limit_headers, "X-RateLimit-Remaining": str(self.limit - hits)})
        return response
