"""Pagination schemas and utilities."""

import math
from typing import Generic, List, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """Generic paginated response wrapper."""

    items: List[T]
    total: int = Field(description="Total number of items matching the query")
    page: int = Field(description="Requested page")
    limit: int = Field(description="Maximum items per page")
    total_pages: int = Field(description="Number of pages at this limit")
    has_more: bool = Field(description="Whether later pages exist")

    @classmethod
    def create(cls, items: List[T], total: int, page: int, limit: int) -> "PaginatedResponse[T]":
        total_pages = math.ceil(total / limit) if limit else 0
        return cls(
            items=items,
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages,
            has_more=page < total_pages,
        )


def paginate_query(query, page: int = 1, limit: int = 10):
    """
    Apply page-based pagination to a SQLAlchemy query.

    Returns:
        Tuple of (page items, total count)
    """
    total = query.count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, total
