"""Exception handlers mapping topic map errors to JSON responses."""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from topicmap.errors import (
    DuplicateIdError,
    ExpansionBusyError,
    ForestViolationError,
    NotFoundError,
    TopicMapError,
)

logger = logging.getLogger(__name__)

DEFAULT_ERRORS: dict[int, tuple[str, str]] = {
    status.HTTP_400_BAD_REQUEST: ("validation_error", "Invalid request payload"),
    status.HTTP_404_NOT_FOUND: ("not_found", "Resource not found"),
    status.HTTP_409_CONFLICT: ("conflict", "Request conflicts with the current map"),
    status.HTTP_500_INTERNAL_SERVER_ERROR: ("internal_error", "Internal server error"),
}

# Most specific first
TOPIC_MAP_ERRORS: list[tuple[type[TopicMapError], int, str]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND, "not_found"),
    (ExpansionBusyError, status.HTTP_409_CONFLICT, "expansion_busy"),
    (DuplicateIdError, status.HTTP_409_CONFLICT, "duplicate_id"),
    (ForestViolationError, status.HTTP_409_CONFLICT, "forest_violation"),
]


def _normalize_error(status_code: int, detail: Any) -> tuple[str, str, dict[str, Any] | None]:
    default_error, default_message = DEFAULT_ERRORS.get(
        status_code, DEFAULT_ERRORS[status.HTTP_500_INTERNAL_SERVER_ERROR]
    )
    if isinstance(detail, dict):
        error = detail.get("error", default_error)
        message = detail.get("message", default_message)
        detail_payload = detail.get("detail")
        if detail_payload is None:
            remainder = {
                k: v for k, v in detail.items() if k not in {"error", "message", "detail"}
            }
            detail_payload = remainder or None
        return error, message, detail_payload
    if isinstance(detail, str) and detail:
        return default_error, detail, None
    return default_error, default_message, None


def _response(status_code: int, detail: Any) -> JSONResponse:
    error, message, extra = _normalize_error(status_code, detail)
    return JSONResponse(
        status_code=status_code, content={"error": error, "message": message, "detail": extra}
    )


async def topic_map_exception_handler(request: Request, exc: TopicMapError) -> JSONResponse:
    for error_type, status_code, error in TOPIC_MAP_ERRORS:
        if isinstance(exc, error_type):
            break
    else:
        status_code, error = status.HTTP_400_BAD_REQUEST, "topic_map_error"
    logger.info(f"{request.method} {request.url.path} -> {status_code}: {exc.message}")
    return _response(
        status_code,
        {"error": error, "message": exc.message, "detail": exc.details or None},
    )


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return _response(status.HTTP_400_BAD_REQUEST, str(exc))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return _response(status.HTTP_400_BAD_REQUEST, {"detail": {"errors": exc.errors()}})


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return _response(exc.status_code, exc.detail)


async def internal_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled exception: {exc}")
    return _response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.args[0] if exc.args else None)


def register_error_handlers(app: FastAPI) -> None:
    """Attach shared exception handlers to the FastAPI application."""
    app.add_exception_handler(TopicMapError, topic_map_exception_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, internal_exception_handler)
