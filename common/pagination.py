from typing import List, Any
from math import ceil
from pydantic import BaseModel

from common.exceptions import ValidationError
from settings.config import get_settings


def clamp_limit(limit: int = None) -> int:
    """
    Resolve a caller-supplied page size.

    ``None`` means the default; values above the maximum clamp down;
    values below 1 are rejected.
    """
    settings = get_settings()
    if limit is None:
        return settings.search_default_limit
    if limit < 1:
        raise ValidationError("limit must be >= 1")
    return min(limit, settings.search_max_limit)


class PaginationParams(BaseModel):
    page: int = 1
    page_size: int = 50

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def validate_range(self):
        if self.page < 1:
            raise ValidationError("page must be >= 1")
        if self.page_size < 1:
            raise ValidationError("limit must be >= 1")


class PaginatedResult(BaseModel):
    items: List[Any]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_prev: bool


def paginate(items: List[Any], page: int = 1, page_size: int = 50) -> PaginatedResult:
    """Slice an already ranked list into one page."""
    params = PaginationParams(page=page, page_size=page_size)
    params.validate_range()
    total = len(items)
    total_pages = ceil(total / page_size) if total > 0 else 0

    return PaginatedResult(
        items=items[params.offset:params.offset + page_size],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1
    )
