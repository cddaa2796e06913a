"""Application error taxonomy and the JSON handlers that render it.

Every error response body has the shape ``{"error": <label>, "message": <detail>}``.
Services raise the exceptions below; the handlers registered by
``register_exception_handlers`` translate them into responses.
"""

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base exception for errors surfaced to API clients."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.error
        super().__init__(self.message)


class ValidationError(AppError):
    """Missing or malformed input."""

    status_code = 400
    error = "Validation error"


class UnauthorizedError(AppError):
    status_code = 401
    error = "Unauthorized"


class ForbiddenError(AppError):
    """Caller does not own the resource."""

    status_code = 403
    error = "Forbidden"


class NotFoundError(AppError):
    status_code = 404
    error = "Not found"


class ConflictError(AppError):
    """Duplicate resource or invalid state transition."""

    status_code = 409
    error = "Conflict"


class UpstreamFailureError(AppError):
    """AI provider or storage provider failure."""

    status_code = 500
    error = "Upstream failure"


_STATUS_LABELS = {
    400: ValidationError.error,
    401: UnauthorizedError.error,
    403: ForbiddenError.error,
    404: NotFoundError.error,
    409: ConflictError.error,
    413: "Payload too large",
    429: "Rate limit exceeded",
}


def error_body(error: str, message: str) -> dict[str, str]:
    return {"error": error, "message": message}


# =============================================================================
# Handlers
# =============================================================================

async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message
        )
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.error, exc.message))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    label = _STATUS_LABELS.get(exc.status_code, "Error" if exc.status_code < 500 else AppError.error)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(label, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render pydantic request validation failures as 400s."""
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return JSONResponse(
        status_code=400,
        content=error_body(ValidationError.error, "; ".join(problems) or "Invalid request"),
    )


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit exceeded on %s %s", request.method, request.url.path)
    response = JSONResponse(
        status_code=429,
        content=error_body("Rate limit exceeded", f"Too many requests: {exc.detail}"),
    )
    limiter = getattr(request.app.state, "limiter", None)
    view_limit = getattr(request.state, "view_rate_limit", None)
    if limiter is not None and view_limit is not None:
        response = limiter._inject_headers(response, view_limit)
    return response


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_body(AppError.error, "An unexpected error occurred"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
