"""
Consistent API error handling for the marketplace access routes.

All API errors use these classes and one response shape. Stack traces are
never returned to clients.

Status codes used:
- 401: missing caller identity, invalid download token
- 403: download or membership check denied
- 404: resource not found
- 500: unexpected error
- 503: storage unavailable
"""

import logging
import uuid
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


def error_body(code: str, message: str, details: Optional[dict[str, Any]] = None) -> dict:
    return {"error": {"code": code, "message": message, "details": details or {}}}


class AppError(Exception):
    """Base application error with a consistent error shape."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict:
        return error_body(self.code, self.message, self.details)


class AuthenticationError(AppError):
    """Authentication failure (401)."""

    def __init__(self, message: str = "Authentication required", details: Optional[dict[str, Any]] = None):
        super().__init__(
            code="AUTHENTICATION_ERROR",
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            details=details,
        )


class PermissionDeniedError(AppError):
    """Permission denied (403)."""

    def __init__(self, message: str = "Permission denied", details: Optional[dict[str, Any]] = None):
        super().__init__(
            code="PERMISSION_DENIED",
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            details=details,
        )


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(self, resource: str, identifier: Optional[str] = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id '{identifier}' not found"
        super().__init__(
            code="NOT_FOUND",
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
        )


class ServiceUnavailableError(AppError):
    """Service unavailable (503)."""

    def __init__(self, message: str = "Service temporarily unavailable"):
        super().__init__(
            code="SERVICE_UNAVAILABLE",
            message=message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )


def get_correlation_id(request: Request) -> str:
    """Correlation ID from the request header, request state, or a new one."""
    correlation_id = request.headers.get(CORRELATION_HEADER)
    if correlation_id:
        return correlation_id
    if hasattr(request.state, "correlation_id"):
        return request.state.correlation_id
    return str(uuid.uuid4())


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.warning(
        "Application error",
        extra={
            "correlation_id": get_correlation_id(request),
            "error_code": exc.code,
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Framework HTTP errors (unknown route, bad method) in the same shape."""
    logger.warning(
        "HTTP exception",
        extra={
            "correlation_id": get_correlation_id(request),
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body("HTTP_ERROR", str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


def register_error_handlers(app: FastAPI) -> None:
    """
    Install the error path: handlers for AppError and HTTP errors, and the
    outer middleware that stamps the correlation id and turns anything else
    into a 500.
    """
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_middleware(ErrorHandlerMiddleware)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Correlation id on every response, and a 500 for unhandled exceptions.

    AppError and HTTP errors never reach this layer; the exception handlers
    above turn them into responses first.

    IMPORTANT: Stack traces are NEVER returned to clients.
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = get_correlation_id(request)
        request.state.correlation_id = correlation_id

        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                "Unhandled exception",
                extra={
                    "correlation_id": correlation_id,
                    "error_type": type(e).__name__,
                    "path": request.url.path,
                    "method": request.method,
                },
            )
            response = JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=error_body(
                    "INTERNAL_ERROR",
                    "An unexpected error occurred",
                    {"correlation_id": correlation_id},
                ),
            )

        response.headers[CORRELATION_HEADER] = correlation_id
        return response
