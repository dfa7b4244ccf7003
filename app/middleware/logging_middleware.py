"""
Request logging middleware for QuizForge
One structured line per request, with timing
"""

import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings

logger = logging.getLogger("quizforge.request")

# Probed constantly by orchestrators and scrapers
QUIET_PATHS = {
    "/metrics",
    f"{settings.API_V1_STR}/health",
    f"{settings.API_V1_STR}/health/detailed",
}


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs method, path, status and duration of every request
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        context = {
            "request_id": getattr(request.state, "request_id", "unknown"),
            "method": request.method,
            "path": request.url.path,
            "client": request.client.host if request.client else "unknown",
        }

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                extra={
                    **context,
                    "process_time": round(time.perf_counter() - start_time, 3),
                    "error": str(e),
                },
                exc_info=True,
            )
            raise

        process_time = time.perf_counter() - start_time
        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            level,
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={
                **context,
                "status_code": response.status_code,
                "process_time": round(process_time, 3),
            },
        )
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        return response
