"""Page/limit pagination shared by list endpoints."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from timesheet_engine.errors import InvalidFormatError

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of results."""

    items: list[T]
    total: int
    page: int
    limit: int
    extra: dict = field(default_factory=dict)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def check_page(page: int, limit: int, max_limit: int) -> None:
    """Reject out of range pagination parameters."""
    if page < 1:
        raise InvalidFormatError("page must be at least 1", context={"page": page})
    if limit < 1 or limit > max_limit:
        raise InvalidFormatError(
            f"limit must be between 1 and {max_limit}", context={"limit": limit}
        )


async def count_rows(session: AsyncSession, query: Select) -> int:
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    return await session.scalar(count_query) or 0


def page_slice(query: Select, page: int, limit: int) -> Select:
    return query.offset((page - 1) * limit).limit(limit)
