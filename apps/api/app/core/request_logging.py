"""Request logging middleware with per-request IDs."""

import logging
import time
import uuid
from contextvars import ContextVar

from fastapi import Request

from app.core.structured_logging import build_log_context

logger = logging.getLogger("app.requests")

REQUEST_ID_HEADER = "X-Request-ID"
SLOW_REQUEST_MS = 1000

_REQUEST_ID: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    """Return the ID of the request being handled, if any."""
    return _REQUEST_ID.get()


async def request_logging_middleware(request: Request, call_next):
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    token = _REQUEST_ID.set(request_id)
    started = time.perf_counter()
    try:
        response = await call_next(request)
    finally:
        _REQUEST_ID.reset(token)
    duration_ms = (time.perf_counter() - started) * 1000

    context = build_log_context(
        user_id=getattr(request.state, "user_id", None),
        request_id=request_id,
        route=request.url.path,
        method=request.method,
        status_code=response.status_code,
        duration_ms=duration_ms,
    )
    message = "%s %s %s %.0fms"
    args = (request.method, request.url.path, response.status_code, duration_ms)
    if response.status_code >= 400:
        logger.warning(message, *args, extra=context)
    else:
        logger.info(message, *args, extra=context)
    if duration_ms > SLOW_REQUEST_MS:
        logger.warning("Slow request: %s %s took %.0fms", request.method, request.url.path, duration_ms, extra=context)

    response.headers[REQUEST_ID_HEADER] = request_id
    return response
