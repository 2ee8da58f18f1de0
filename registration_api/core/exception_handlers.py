"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain and unexpected) and return consistent JSON responses with proper
HTTP status codes and traceability.

Design:
- AppError subclasses → appropriate HTTP status (400, 429, 500)
- Request validation / HTTP errors → same body shape
- Unexpected Exception → generic 500 (safety net)
- All responses include request_id for distributed tracing

Body shape::

    {"error": "<code>", "message": "<human text>", "request_id": "...", "details": {...}}
"""

import logging
import re

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from registration_api.core.config import settings
from registration_api.core.cors import cors_headers, is_cors_path
from registration_api.core.errors import (
    AppError,
    RateLimitExceededError,
    ValidationAppError,
)
from registration_api.core.logging import get_request_id

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."

_HTTP_ERROR_MESSAGES = {
    404: "Not Found",
    405: "Only POST requests are allowed",
}


def status_code_for(exc: AppError) -> int:
    """Map a domain error to its HTTP status code.

    - ValidationAppError (incl. MissingTemplateFieldError) → 400
    - RateLimitExceededError → 429
    - everything else (rate-limit check, storage, persistence,
      configuration, notification) → 500
    """
    if isinstance(exc, ValidationAppError):
        return 400
    if isinstance(exc, RateLimitExceededError):
        return 429
    return 500


def _error_body(
    code: str,
    message: str,
    details: dict | None = None,
    request_id: str | None = None,
) -> dict:
    body = {
        "error": code,
        "message": message,
        "request_id": request_id or get_request_id(),
    }
    # Include details only if present (optional structured context)
    if details:
        body["details"] = details
    return body


def _rate_limit_headers(exc: RateLimitExceededError) -> dict[str, str]:
    if not settings.app.rate_limit_include_headers:
        return {}
    details = exc.details or {}
    return {
        "Retry-After": str(details.get("retry_after", 0)),
        "X-RateLimit-Limit": str(details.get("limit", settings.app.registration_limit)),
        "X-RateLimit-Remaining": "0",
    }


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = status_code_for(exc)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_id": get_request_id(),
        }
    )

    headers: dict[str, str] = {}
    if isinstance(exc, RateLimitExceededError):
        headers = _rate_limit_headers(exc)

    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.code, exc.message, dict(exc.details) if exc.details else None),
        headers=headers or None,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as 400 instead of FastAPI's 422."""
    fields = [".".join(str(p) for p in err.get("loc", ())[1:]) for err in exc.errors()]
    logger.warning(
        "request_validation_failed",
        extra={"fields": fields, "request_path": request.url.path},
    )
    return JSONResponse(
        status_code=400,
        content=_error_body(
            "validation_error",
            "Request body is missing or malformed.",
            {"fields": [f for f in fields if f]},
        ),
    )


def _snake(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", text.lower()).strip("_")


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (404, 405, ...) in the shared body shape."""
    label = _HTTP_ERROR_MESSAGES.get(exc.status_code, str(exc.detail))
    code = "method_not_allowed" if exc.status_code == 405 else _snake(str(exc.detail)) or "http_error"
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(code, label),
        headers=getattr(exc, "headers", None),
    )


def _request_id_for(request: Request) -> str | None:
    """Resolve the request id once the middleware context has been cleared."""
    candidates = (
        get_request_id(),
        getattr(request.state, "request_id", None),
        request.headers.get(settings.log.request_id_header),
    )
    return next((value for value in candidates if isinstance(value, str) and value), None)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Catches any exception not handled by specific handlers.
    Logs detailed information for debugging while returning generic message.
    Prevents information leakage (no stack traces to client).

    This handler runs outside the HTTP middleware stack, so CORS headers
    for registration endpoints and the request id header are attached here.
    """
    request_id = _request_id_for(request)
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": request_id,
        }
    )

    headers = cors_headers() if is_cors_path(request.url.path) else {}
    if request_id:
        headers[settings.log.request_id_header] = request_id
    return JSONResponse(
        status_code=500,
        content=_error_body("internal_server_error", GENERIC_ERROR_MESSAGE, request_id=request_id),
        headers=headers or None,
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Must be called during app initialization, before route registration.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
