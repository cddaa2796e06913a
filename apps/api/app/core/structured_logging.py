"""Structured logging helpers (no request bodies, no credentials)."""

from typing import Any


def build_log_context(
    *,
    user_id: str | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
    status_code: int | None = None,
    duration_ms: float | None = None,
) -> dict[str, Any]:
    """Return a log context dict containing only the fields that are set."""
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = user_id
    if request_id:
        context["request_id"] = request_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    if status_code is not None:
        context["status_code"] = status_code
    if duration_ms is not None:
        context["duration_ms"] = round(duration_ms, 1)
    return context
