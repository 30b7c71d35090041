# tenant_cms/normalizers/pagination.py
from typing import Callable, Any, Dict, Optional

from tenant_cms.utils.pagination import CursorMeta


def normalize_pagination(
    pagination: Any,
    normalize_fn: Callable[[Any], Dict[str, Any]],
) -> Dict[str, Any]:
    """
    Offset pagination response for a Flask-SQLAlchemy Pagination object.
    """
    return {
        "items": [normalize_fn(item) for item in pagination.items],
        "pagination": {
            "page": pagination.page,
            "per_page": pagination.per_page,
            "total": pagination.total,
            "total_pages": pagination.pages,
        },
    }


def normalize_cursor_page(
    items: list,
    normalize_fn: Callable[[Any], Dict[str, Any]],
    cursor: Optional[CursorMeta],
) -> Dict[str, Any]:
    return {
        "items": [normalize_fn(item) for item in items],
        "pagination": dict(cursor or {"has_more": False, "next_cursor": None}),
    }
