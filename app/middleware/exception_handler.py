"""Global exception handlers for the FastAPI application.

Every error leaves the API as ``{"error", "detail", "request_id"}``.
Unhandled exceptions are logged with their stack trace server-side and
reported to the client as a bare 500.
"""

import logging
import uuid

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.errors import GameSmithError, format_error_response

logger = logging.getLogger(__name__)


def _get_request_id(request: Request) -> str:
    """Request ID set by :class:`RequestIDMiddleware`, or a fresh UUID-4."""
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def _error(request: Request, status_code: int, error: str, detail: object = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=format_error_response(
            error=error,
            detail=detail,
            request_id=_get_request_id(request),
        ),
    )


async def global_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Catch-all for any unhandled exception — returns 500."""
    logger.error(
        "Unhandled exception on %s %s [request_id=%s]",
        request.method,
        request.url.path,
        _get_request_id(request),
        exc_info=exc,
    )
    return _error(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal Server Error",
        "Internal server error",
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle Starlette/FastAPI ``HTTPException`` — preserves status code."""
    logger.warning(
        "HTTP %s on %s %s: %s",
        exc.status_code,
        request.method,
        request.url.path,
        exc.detail,
    )
    detail = str(exc.detail) if exc.detail else None
    return _error(request, exc.status_code, detail or "Error", detail)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request-body validation errors — missing or malformed fields are a 400."""
    errors = jsonable_encoder(exc.errors())
    logger.warning(
        "Validation error on %s %s: %s",
        request.method,
        request.url.path,
        errors,
    )
    return _error(request, status.HTTP_400_BAD_REQUEST, "Validation failed", errors)


async def domain_error_handler(
    request: Request, exc: GameSmithError
) -> JSONResponse:
    """Handle :class:`GameSmithError` subclasses — maps to their HTTP status."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    return _error(request, exc.status_code, str(exc), str(exc))


async def value_error_handler(
    request: Request, exc: ValueError
) -> JSONResponse:
    """Stray ``ValueError`` from a service — treated as a bad request."""
    return _error(request, status.HTTP_400_BAD_REQUEST, "Bad Request", str(exc))


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all global exception handlers on *app*."""
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(GameSmithError, domain_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ValueError, value_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)  # type: ignore[arg-type]
