"""
Rate limiting for QuizForge
Per-client fixed window limits through slowapi
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from app.core.config import settings
from app.core.exceptions import create_error_response

logger = logging.getLogger(__name__)


def default_limit() -> str:
    return f"{settings.RATE_LIMIT_REQUESTS}/{settings.RATE_LIMIT_PERIOD} seconds"


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Answer 429 with the shared error envelope"""
    logger.warning(
        "Rate limit exceeded",
        extra={"path": request.url.path, "client": get_remote_address(request)},
    )
    return create_error_response(
        request,
        status_code=429,
        error_code="RATE_LIMIT_EXCEEDED",
        message="Too many requests. Please try again later.",
        details={"limit": str(exc.detail)},
    )


def add_rate_limiting(app: FastAPI) -> Limiter:
    """Attach a limiter applying the configured default limit to every route"""
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[default_limit()],
        enabled=settings.RATE_LIMIT_ENABLED,
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
    return limiter
