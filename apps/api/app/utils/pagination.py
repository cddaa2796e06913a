"""Pagination utilities for list endpoints."""

from dataclasses import dataclass

from fastapi import Query

# Pagination limits
DEFAULT_LIMIT = 50
MAX_LIMIT = 100


@dataclass
class PaginationParams:
    """Limit/offset pagination parameters from query string."""
    limit: int
    offset: int


def get_pagination(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT, description=f"Items per page (max {MAX_LIMIT})"),
    offset: int = Query(0, ge=0, description="Number of items to skip"),
) -> PaginationParams:
    """
    Pagination dependency.

    Usage:
        @router.get("/items")
        def list_items(pagination: PaginationParams = Depends(get_pagination)):
            ...
    """
    return PaginationParams(limit=limit, offset=offset)


def page_meta(total: int, pagination: PaginationParams) -> dict:
    return {"total": total, "limit": pagination.limit, "offset": pagination.offset}
