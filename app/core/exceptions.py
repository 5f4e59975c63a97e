"""Domain errors raised by the services and their HTTP mapping."""

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.config import settings

logger = structlog.get_logger(__name__)


class EngineError(Exception):
    """Base class for errors that abort a lifecycle operation."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "engine_error"

    def __init__(self, message: str = None, code: str = None):
        self.message = message or self.__class__.__doc__ or self.code
        if code:
            self.code = code
        super().__init__(self.message)


class NotFoundError(EngineError):
    """Referenced record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class UnauthorizedError(EngineError):
    """Caller is not allowed to perform this action."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "unauthorized"


class InvalidStateError(EngineError):
    """Current status does not allow this action; refresh and retry."""

    status_code = status.HTTP_409_CONFLICT
    code = "invalid_state"


class ConflictError(EngineError):
    """Student already has an active application."""

    status_code = status.HTTP_409_CONFLICT
    code = "active_application_exists"


class DuplicateApplicationError(ConflictError):
    """Student has already applied to this job."""

    code = "duplicate_application"


class DuplicateEvaluationError(ConflictError):
    """Evaluation for this match has already been submitted."""

    code = "evaluation_already_submitted"


class ValidationError(EngineError):
    """Input is outside the accepted range."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "validation_error"


class DeliverySoftError(Exception):
    """Notification or email delivery failed. Never surfaced to callers."""

    def __init__(self, message: str, retryable: bool = True):
        self.retryable = retryable
        super().__init__(message)


async def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    logger.info(
        "engine_error",
        path=request.url.path,
        code=exc.code,
        error=exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler."""
    logger.error("unhandled_error", path=request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "message": str(exc) if settings.DEBUG else "An error occurred",
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(EngineError, engine_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
