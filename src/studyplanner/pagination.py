"""Offset pagination for list endpoints."""

from __future__ import annotations

import math
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


def page_count(total: int, per_page: int) -> int:
    return math.ceil(total / per_page) if per_page else 0


async def paginate(
    db: AsyncSession,
    query: Select[Any],
    page: int,
    per_page: int,
) -> tuple[list[Any], int]:
    """Run ``query`` for one page and count all matching rows.

    The query must already carry its filters and ordering.
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar_one()

    result = await db.execute(query.offset((page - 1) * per_page).limit(per_page))
    return list(result.scalars().all()), total
