"""
Query helpers shared by the services: pagination and case-insensitive search.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Generic, List, TypeVar

from sqlalchemy import Select, func, or_, select
from sqlalchemy.orm import Session

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@dataclass
class Page(Generic[T]):
    """One page of results. ``page`` is zero-based."""
    items: List[T] = field(default_factory=list)
    page: int = 0
    size: int = DEFAULT_PAGE_SIZE
    total: int = 0

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.size) if self.size else 0

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.pages

    @property
    def has_prev(self) -> bool:
        return self.page > 0


def paginate(session: Session, stmt: Select, page: int = 0, size: int = DEFAULT_PAGE_SIZE) -> Page:
    """
    Run ``stmt`` for one page and count the full result.

    Args:
        session: Active session
        stmt: Select of a single ORM entity, already filtered and ordered
        page: Zero-based page index (negative values clamp to 0)
        size: Page size, clamped to 1..MAX_PAGE_SIZE

    Returns:
        Page with the entities and the total row count
    """
    page = max(page, 0)
    size = min(max(size, 1), MAX_PAGE_SIZE)

    total = session.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0
    items = session.scalars(stmt.offset(page * size).limit(size)).unique().all()
    return Page(items=list(items), page=page, size=size, total=total)


def contains_ci(term: str, *columns: Any):
    """OR of case-insensitive ``LIKE %term%`` over ``columns``. Wildcards in ``term`` match literally."""
    escaped = term.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"
    return or_(*(func.lower(column).like(pattern, escape="\\") for column in columns))
