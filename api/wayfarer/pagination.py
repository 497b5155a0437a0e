from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


@dataclass(frozen=True)
class PageParams:
    """Zero-based offset and page size."""

    offset: int = 0
    limit: int = DEFAULT_PAGE_SIZE


def page_params(
    offset: int = Query(0, ge=0, description="Zero-based offset"),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Page size"),
) -> PageParams:
    """FastAPI dependency for list endpoints."""
    return PageParams(offset=offset, limit=limit)


def normalize_page(offset: int | None, limit: int | None) -> tuple[int, int]:
    """
    Clamp pagination arguments for service-level callers.

    Negative offsets become 0; a missing or non-positive limit falls back to
    DEFAULT_PAGE_SIZE and anything above MAX_PAGE_SIZE is capped.
    """
    offset = max(0, offset or 0)
    if not limit or limit < 1:
        limit = DEFAULT_PAGE_SIZE
    return offset, min(limit, MAX_PAGE_SIZE)


def paginate(
    db: Session, stmt, offset: int | None, limit: int | None
) -> tuple[list[Any], int]:
    """
    Execute a select statement as one page plus a total count.

    The total is computed over the unordered statement so the count query
    does not carry the ORDER BY.

    Returns:
        Tuple of (rows, total)
    """
    offset, limit = normalize_page(offset, limit)
    total = db.scalar(
        select(func.count()).select_from(stmt.order_by(None).subquery())
    ) or 0
    rows = db.execute(stmt.offset(offset).limit(limit)).all()
    return [row[0] if len(row) == 1 else row for row in rows], total
