# tenant_cms/utils/pagination.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Tuple, Type, TypedDict

from sqlalchemy.orm import Query
from sqlalchemy.sql import and_, or_
from werkzeug.exceptions import BadRequest

DEFAULT_PER_PAGE = 15
MAX_PER_PAGE = 100
CURSOR_SEPARATOR = "|"


class CursorMeta(TypedDict):
    has_more: bool
    next_cursor: Optional[str]


def clamp_per_page(value: Any, default: int = DEFAULT_PER_PAGE) -> int:
    """Page sizes from query strings: junk falls back to `default`, the rest is held to 1..MAX_PER_PAGE."""
    try:
        per_page = int(value)
    except (TypeError, ValueError):
        return default
    return max(1, min(per_page, MAX_PER_PAGE))


def encode_cursor(created_at: datetime, row_id: Any) -> str:
    if not isinstance(created_at, datetime) or row_id is None:
        raise ValueError("A cursor needs the row's created_at and id")
    return f"{created_at.isoformat()}{CURSOR_SEPARATOR}{row_id}"


def decode_cursor(cursor: str) -> Tuple[datetime, str]:
    ts_str, sep, row_id = (cursor or "").partition(CURSOR_SEPARATOR)
    if not sep or not row_id:
        raise BadRequest("Invalid cursor format")
    try:
        return datetime.fromisoformat(ts_str), row_id
    except ValueError as exc:
        raise BadRequest("Invalid cursor format") from exc


def _older_than(query: Query, model: Type[Any], cursor: str) -> Query:
    created_at, row_id = decode_cursor(cursor)
    return query.filter(or_(
        model.created_at < created_at,
        and_(model.created_at == created_at, model.id < row_id),
    ))


def paginate_cursor(
    query: Query,
    *,
    model: Type[Any],
    limit: int,
    cursor: Optional[str] = None,
) -> tuple[list[Any], CursorMeta]:
    """
    Newest first, keyed on (created_at, id) so rows sharing a timestamp are
    neither skipped nor repeated. One extra row is read to know whether
    another page follows.
    """
    if limit <= 0:
        raise BadRequest("Limit must be greater than zero")

    if cursor:
        query = _older_than(query, model, cursor)

    rows = query.order_by(model.created_at.desc(), model.id.desc()).limit(limit + 1).all()
    items = rows[:limit]
    has_more = len(rows) > limit

    return items, {
        "has_more": has_more,
        "next_cursor": encode_cursor(items[-1].created_at, items[-1].id) if has_more else None,
    }
