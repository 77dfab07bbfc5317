"""
Service error taxonomy and the handlers that turn it into HTTP responses
"""

from typing import Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

logger = structlog.get_logger(__name__)


class TripPlannerError(Exception):
    """Base class for errors raised by the services"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(TripPlannerError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request."


class AuthError(TripPlannerError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized. Please log in."


class ForbiddenError(TripPlannerError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden."


class NotFoundError(TripPlannerError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found."


class ConflictError(TripPlannerError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict."


class PersistenceError(TripPlannerError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Database operation failed."


async def trip_planner_error_handler(request: Request, exc: TripPlannerError):
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "request_rejected",
        error_type=type(exc).__name__,
        status_code=exc.status_code,
        detail=exc.message,
        path=request.url.path,
        method=request.method,
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = jsonable_encoder(exc.errors())
    logger.warning(
        "request_validation_failed",
        path=request.url.path,
        method=request.method,
        error_count=len(errors),
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request body.", "errors": errors},
    )


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(
        "rate_limit_exceeded",
        limit=str(exc.detail),
        path=request.url.path,
        method=request.method,
    )
    response = JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"detail": f"Rate limit exceeded: {exc.detail}"},
    )
    return request.app.state.limiter._inject_headers(response, request.state.view_rate_limit)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TripPlannerError, trip_planner_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
