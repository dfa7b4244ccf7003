"""
Error taxonomy and HTTP error handlers for QuizForge
Every failure leaves the API in the same JSON envelope
"""

import logging
from typing import Any, Dict, Optional

import sentry_sdk
from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings

logger = logging.getLogger(__name__)


class QuizForgeException(Exception):
    """
    Base class for domain failures

    Subclasses pin ``status_code``, ``error_code`` and a default message;
    callers may override the message and attach ``details``.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"
    default_message: str = "Internal error"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
    ):
        self.message = message or self.default_message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code
        super().__init__(self.message)


class StorageException(QuizForgeException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "STORAGE_ERROR"
    default_message = "Storage operation failed"


class AuthenticationException(QuizForgeException):
    """No usable credential was presented"""
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "AUTHENTICATION_ERROR"
    default_message = "Authentication required"


class InvalidTokenException(QuizForgeException):
    """A credential was presented but resolves to no identity"""
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "INVALID_TOKEN"
    default_message = "Invalid or expired token"


class ForbiddenException(QuizForgeException):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"
    default_message = "Access denied"


class ValidationException(QuizForgeException):
    status_code = 422
    error_code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class NotFoundException(QuizForgeException):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource", details: Optional[Dict[str, Any]] = None):
        super().__init__(f"{resource} not found", details)


class InvalidStateException(QuizForgeException):
    """Operation not allowed in the record's current state"""
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "INVALID_STATE"
    default_message = "Invalid state for operation"


class AttemptLimitExceededException(QuizForgeException):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "ATTEMPT_LIMIT_EXCEEDED"

    def __init__(self, max_attempts: int, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Maximum attempts ({max_attempts}) reached for this quiz",
            details or {"max_attempts": max_attempts},
        )


class DuplicateSubmissionException(QuizForgeException):
    """Attempt registration lost a race with a concurrent submission"""
    status_code = status.HTTP_409_CONFLICT
    error_code = "DUPLICATE_SUBMISSION"
    default_message = "This attempt has already been submitted"


class ExternalServiceException(QuizForgeException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "EXTERNAL_SERVICE_ERROR"

    def __init__(
        self,
        service: str,
        message: str = "External service error",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(f"{service}: {message}", details)


def create_error_response(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """Render the shared ``{"error": {...}}`` envelope"""
    body = {
        "code": error_code,
        "message": message,
        "details": details or {},
        "path": request.url.path,
        "method": request.method,
    }
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        body["request_id"] = request_id
    return JSONResponse(status_code=status_code, content={"error": body})


async def quizforge_exception_handler(request: Request, exc: QuizForgeException) -> JSONResponse:
    """Domain failures: 4xx logged as warnings, 5xx as errors and sent to Sentry"""
    server_side = exc.status_code >= 500
    (logger.error if server_side else logger.warning)(
        f"{exc.error_code}: {exc.message}",
        extra={
            "error_code": exc.error_code,
            "status_code": exc.status_code,
            "details": exc.details,
            "path": request.url.path,
        },
    )
    if server_side and settings.SENTRY_DSN:
        sentry_sdk.capture_exception(exc)

    return create_error_response(
        request, exc.status_code, exc.error_code, exc.message, exc.details
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return create_error_response(request, exc.status_code, "HTTP_ERROR", str(exc.detail))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Request body/query failures, one entry per offending field"""
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning("Request validation failed", extra={"errors": errors, "path": request.url.path})

    return create_error_response(
        request,
        422,
        "VALIDATION_ERROR",
        "Request validation failed",
        {"errors": errors},
    )


async def storage_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Store failures that escaped a transaction block"""
    return await quizforge_exception_handler(request, StorageException(details={"reason": str(exc)}))


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled {type(exc).__name__}: {exc}",
        extra={"path": request.url.path},
        exc_info=True,
    )
    if settings.SENTRY_DSN:
        sentry_sdk.capture_exception(exc)

    message = "An unexpected error occurred" if settings.is_production() else str(exc)
    return create_error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", message
    )


def register_exception_handlers(app) -> None:
    """Attach every handler above to ``app``"""
    app.add_exception_handler(QuizForgeException, quizforge_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, storage_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
