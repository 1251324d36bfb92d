"""Shared pagination helpers for SQLAlchemy queries."""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement


def last_page_for(total: int, per_page: int) -> int:
    """Return the last 1-based page number (never below 1)."""

    if per_page < 1:
        raise ValueError("per_page must be greater than or equal to 1")
    return max(1, math.ceil(total / per_page))


async def paginate(
    session: AsyncSession,
    query: Select[Any],
    *,
    page: int,
    per_page: int,
    order_by: Sequence[ColumnElement[Any]],
) -> dict[str, Any]:
    """Execute ``query`` with limit/offset pagination and return a page envelope."""

    if page < 1:
        raise ValueError("page must be greater than or equal to 1")
    if per_page < 1:
        raise ValueError("per_page must be greater than or equal to 1")

    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = int((await session.execute(count_query)).scalar_one())

    offset = (page - 1) * per_page
    statement = query.order_by(*order_by).offset(offset).limit(per_page)
    result = await session.execute(statement)
    rows = list(result.scalars().all())

    return {
        "items": rows,
        "current_page": page,
        "last_page": last_page_for(total, per_page),
        "per_page": per_page,
        "total": total,
    }


__all__ = ["last_page_for", "paginate"]
