"""
Offset pagination shared by every listing.

All listings return `{data, total, pages}` with pages = ceil(total / limit).
For N items and limit L, page ceil(N/L) holds N mod L items (L when the
division is exact) and any later page is empty.
"""

import math
from typing import Any, List, Sequence, Tuple

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from triptrack.exceptions import ValidationError


def check_page(page: int, limit: int) -> None:
    if page < 1:
        raise ValidationError(message="Page must be at least 1", field="page")
    if limit < 1:
        raise ValidationError(message="Limit must be at least 1", field="limit")


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if total else 0


def slice_page(items: Sequence[Any], page: int, limit: int) -> Tuple[List[Any], int, int]:
    """Paginate a list that was already filtered in Python."""
    check_page(page, limit)
    total = len(items)
    start = (page - 1) * limit
    return list(items[start:start + limit]), total, page_count(total, limit)


async def paginate(
    db: AsyncSession,
    query: Select,
    page: int,
    limit: int,
    options: Sequence[Any] = (),
) -> Tuple[List[Any], int, int]:
    """
    Run a paginated ORM query.

    Args:
        query: Filtered and ordered select of a single entity, without
            loader options (it is also used for the COUNT).
        options: Loader options (selectinload, ...) applied to the page only.

    Returns:
        (items on the page, total matching rows, page count)
    """
    check_page(page, limit)

    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0

    # populate_existing: set rows written through Core must replace stale collections
    page_query = (
        query.offset((page - 1) * limit)
        .limit(limit)
        .execution_options(populate_existing=True)
    )
    if options:
        page_query = page_query.options(*options)
    result = await db.execute(page_query)
    return list(result.scalars().all()), total, page_count(total, limit)
