"""
Pagination Utility Module

Provides standardized pagination helpers for list endpoints.
"""
from typing import List, Optional, Any
from pydantic import BaseModel
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from research_portal.core.config import settings


class PaginationMeta(BaseModel):
    """Pagination block returned next to list data"""
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_previous: bool


def clamp_page(page: Optional[int], limit: Optional[int]) -> tuple:
    """Normalize page/limit to 1-indexed page and 1..MAX_PAGE_SIZE limit"""
    page = max(1, page or 1)
    limit = max(1, min(settings.MAX_PAGE_SIZE, limit or settings.DEFAULT_PAGE_SIZE))
    return page, limit


def build_pagination(total: int, page: int, limit: int) -> dict:
    total_pages = (total + limit - 1) // limit if total > 0 else 1
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_previous": page > 1,
    }


async def paginate(
    db: AsyncSession,
    query: Select,
    page: Optional[int] = 1,
    limit: Optional[int] = None,
    count_query: Optional[Select] = None
) -> dict:
    """
    Apply pagination to a SQLAlchemy query.

    Args:
        db: Database session
        query: Base SQLAlchemy query (ordering already applied)
        page: Page number (1-indexed)
        limit: Items per page, capped at MAX_PAGE_SIZE
        count_query: Optional custom count query

    Returns:
        Dictionary with items and a pagination block
    """
    page, limit = clamp_page(page, limit)
    offset = (page - 1) * limit

    if count_query is None:
        count_query = select(func.count()).select_from(query.order_by(None).subquery())
    count_result = await db.execute(count_query)
    total = count_result.scalar() or 0

    result = await db.execute(query.offset(offset).limit(limit))
    items: List[Any] = list(result.scalars().unique().all())

    return {
        "items": items,
        "pagination": build_pagination(total, page, limit),
    }
