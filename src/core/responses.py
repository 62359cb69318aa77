"""Response envelope helpers.

Every endpoint answers ``{success, data?, message?}``; list endpoints put a
``pagination`` object next to their items inside ``data``.
"""

import math
from collections.abc import Sequence
from typing import Any, TypeVar


T = TypeVar("T")


def success_response(
    data: Any = None,
    message: str | None = None,
) -> dict[str, Any]:
    """Build a success envelope, omitting empty keys."""
    body: dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def error_response(
    message: str,
    code: str | None = None,
    request_id: str | None = None,
    errors: list[dict[str, str]] | None = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "message": message}
    if code:
        body["code"] = code
    if errors:
        body["errors"] = errors
    if request_id:
        body["request_id"] = request_id
    return body


def build_pagination(
    page: int,
    limit: int,
    total: int,
    resource: str,
) -> dict[str, Any]:
    """Pagination block keyed by resource, e.g. ``totalArticles``.

    Args:
        page: 1-based page number.
        limit: Page size.
        total: Total number of matching items.
        resource: Capitalised plural resource name ("Articles", "Comments").
    """
    total_pages = math.ceil(total / limit) if limit > 0 else 0
    return {
        "currentPage": page,
        "totalPages": total_pages,
        f"total{resource}": total,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
    }


def paginate(items: Sequence[T], page: int, limit: int) -> list[T]:
    """Slice an already ordered sequence with skip = (page - 1) * limit."""
    skip = max(page - 1, 0) * limit
    return list(items[skip : skip + limit])


__all__ = ["build_pagination", "error_response", "paginate", "success_response"]
