"""
Centralized error types and JSON error responses.

Every failure path returns `{"error": <code>, "detail": <message>}` so the mobile
client can show something useful without parsing framework-specific shapes.
"""
import logging
from typing import Any

from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


class AppError(Exception):
    """Base application error."""
    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: str = "internal_error",
        details: dict | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class BadRequestError(AppError):
    """Malformed or missing client input; raised before any upstream call."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=400, code="bad_request", details=details)


class ConfigurationError(AppError):
    """Credentials or model are missing; no upstream call is attempted."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=500, code="config_error", details=details)


class UpstreamError(AppError):
    """The LLM provider failed or returned nothing usable."""
    def __init__(self, message: str, status_code: int | None = None, details: dict | None = None):
        merged = dict(details or {})
        if status_code is not None:
            merged["upstream_status"] = status_code
        super().__init__(message, status_code=500, code="upstream_error", details=merged)


# Machine-readable codes for plain HTTP status errors (router 404/405 etc.)
STATUS_CODES = {
    400: "bad_request",
    404: "not_found",
    405: "method_not_allowed",
    413: "payload_too_large",
    500: "internal_error",
}


def error_code_for_status(status_code: int) -> str:
    return STATUS_CODES.get(status_code, "bad_request" if status_code < 500 else "internal_error")


def create_error_response(
    status_code: int,
    code: str,
    detail: Any,
    extra: dict | None = None,
    headers: dict | None = None,
) -> JSONResponse:
    """Create a standardized error response."""
    content: dict[str, Any] = {
        "error": code,
        "detail": detail,
    }
    if extra:
        content.update(extra)

    return JSONResponse(
        status_code=status_code,
        content=content,
        headers={**CORS_HEADERS, **(headers or {})},
    )


def app_error_response(exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("%s (%s): %s", exc.code, exc.status_code, exc.message)
    return create_error_response(exc.status_code, exc.code, exc.message, exc.details)
