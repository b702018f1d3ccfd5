"""Middleware stack and exception handlers."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studyplanner.config import Settings
from studyplanner.middleware.error_handler import setup_error_handlers
from studyplanner.middleware.logging import setup_logging
from studyplanner.middleware.rate_limit import RateLimitMiddleware
from studyplanner.middleware.request_context import REQUEST_ID_HEADER, RequestContextMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Install logging, error handlers, and middleware.

    Middleware added last runs first: CORS wraps everything, including 429s
    from the rate limiter, and every response carries a request id.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER, "X-RateLimit-Remaining", "X-RateLimit-Limit"],
    )
