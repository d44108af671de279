"""Exception taxonomy and the shared HTTP error envelope."""

from __future__ import annotations

import logging
import os
import uuid
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .observability import get_request_id

logger = logging.getLogger(__name__)


class MazeError(Exception):
    """Base class for errors raised by the generation core and its consumers."""


class TrainingError(MazeError):
    """The training corpus is unreadable or too small to form a transition."""


class ConfigError(MazeError):
    """Configuration values are missing or inconsistent."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or [message]


class GenerationError(MazeError):
    """The walk could not produce a token; indicates a corrupted model."""


ERROR_CODE_BY_STATUS = {
    400: "invalid_request",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    413: "payload_too_large",
    422: "validation_error",
    429: "rate_limited",
    500: "internal_error",
    503: "service_unavailable",
}


def _status_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Request failed"


def _error_code(status_code: int) -> str:
    return ERROR_CODE_BY_STATUS.get(status_code, f"http_{status_code}")


def _request_id_from_request(request: Request) -> tuple[str, str]:
    header_name = "X-Request-ID"
    state = getattr(request.app.state, "observability", None)
    if state and hasattr(state, "settings"):
        header_name = state.settings.request_id_header
    request_id = (
        request.headers.get(header_name) or get_request_id() or str(uuid.uuid4())
    )
    return request_id, header_name


def _include_error_details() -> bool:
    """Whether to include error details in HTTP responses.

    Off unless ERROR_INCLUDE_DETAILS=true; details can leak corpus paths.
    """

    return os.getenv("ERROR_INCLUDE_DETAILS", "false").lower() == "true"


def _build_payload(
    *,
    message: str,
    code: str,
    request_id: str,
    details: Any | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "error": {"code": code, "message": message},
        "request_id": request_id,
        "detail": message,
    }
    if details is not None:
        payload["error"]["details"] = details
    return payload


def _error_response(
    request: Request,
    *,
    status_code: int,
    message: str,
    code: str | None = None,
    details: Any | None = None,
) -> JSONResponse:
    request_id, header_name = _request_id_from_request(request)
    payload = _build_payload(
        message=message,
        code=code or _error_code(status_code),
        request_id=request_id,
        details=details,
    )
    response = JSONResponse(payload, status_code=status_code)
    response.headers.setdefault(header_name, request_id)
    return response


def register_error_handlers(app: FastAPI) -> None:
    """Register shared error handlers that emit a stable envelope."""

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        message = (
            exc.detail
            if isinstance(exc.detail, str)
            else _status_phrase(exc.status_code)
        )
        details = None
        if not isinstance(exc.detail, str) and _include_error_details():
            details = exc.detail
        response = _error_response(
            request,
            status_code=exc.status_code,
            message=message,
            details=details,
        )
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(RequestValidationError)
    async def _validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error_response(
            request,
            status_code=422,
            message="Validation error",
            details=exc.errors(),
        )

    @app.exception_handler(GenerationError)
    async def _generation_exception_handler(
        request: Request, exc: GenerationError
    ) -> JSONResponse:
        logger.error(
            "Page generation failed method=%s path=%s: %s",
            request.method,
            request.url.path,
            exc,
        )
        details = str(exc) if _include_error_details() else None
        return _error_response(
            request,
            status_code=500,
            message="Page generation failed",
            code="generation_failed",
            details=details,
        )

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        request_id, _ = _request_id_from_request(request)
        logger.exception(
            "Unhandled exception request_id=%s method=%s path=%s",
            request_id,
            request.method,
            request.url.path,
        )
        return _error_response(
            request, status_code=500, message="Internal server error"
        )
