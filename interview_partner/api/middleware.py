"""Middleware for request correlation and exception handling."""

import logging
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.status import (
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from interview_partner.core.exceptions import SessionCompletedError, SessionNotFoundError
from interview_partner.core.logging import log_event, set_request_id
from interview_partner.providers import ConfigurationError, ExhaustedRetriesError

logger = logging.getLogger(__name__)

SERVICE_BUSY_MESSAGE = "The interview service is busy right now. Please try again in a few moments."


def error_response(status_code: int, error: str, message: str, details: str | None = None) -> JSONResponse:
    """Create a consistent error response format."""
    return JSONResponse(status_code=status_code, content={"error": error, "message": message, "details": details})


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Adds a request ID to all logs and responses."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request.state.request_id = request_id
        set_request_id(request_id)

        log_event(
            "request.started",
            component="middleware",
            operation="request_id",
            method=request.method,
            path=request.url.path,
        )

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            log_event(
                "request.completed",
                component="middleware",
                operation="request_id",
                status_code=response.status_code,
            )
            return response
        finally:
            set_request_id(None)


class ExceptionHandlingMiddleware(BaseHTTPMiddleware):
    """Last line of defence: turns exceptions that escaped the route handlers into JSON errors."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            return self._handle_exception(request, exc)

    def _handle_exception(self, request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Exception in {request.method} {request.url.path}: {exc}")

        if isinstance(exc, SessionNotFoundError):
            return error_response(HTTP_404_NOT_FOUND, "SessionNotFound", str(exc))
        if isinstance(exc, SessionCompletedError):
            return error_response(HTTP_409_CONFLICT, "SessionCompleted", str(exc))
        if isinstance(exc, ExhaustedRetriesError):
            return error_response(HTTP_503_SERVICE_UNAVAILABLE, "ServiceBusy", SERVICE_BUSY_MESSAGE)
        if isinstance(exc, ConfigurationError):
            return error_response(HTTP_500_INTERNAL_SERVER_ERROR, "ConfigurationError", str(exc))
        return error_response(HTTP_500_INTERNAL_SERVER_ERROR, "InternalServerError", "An unexpected error occurred")
