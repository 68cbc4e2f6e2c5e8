"""Pagination metadata as returned by list endpoints, plus the helpers the
list views use to render page controls."""
from __future__ import annotations

import math
from typing import List, Optional, Tuple, Union

from pydantic import model_validator

from .models import WireModel

MAX_PAGES_TO_SHOW = 7
ELLIPSIS = "..."

PageToken = Union[int, str]


class PaginationMeta(WireModel):
    current_page: int = 1
    total_pages: int = 0
    items_per_page: int = 10
    total_items: int = 0
    has_next_page: Optional[bool] = None
    has_prev_page: Optional[bool] = None
    next_page: Optional[int] = None
    prev_page: Optional[int] = None

    @model_validator(mode="after")
    def check_flags(self) -> "PaginationMeta":
        expected_next = self.current_page < self.total_pages
        expected_prev = self.current_page > 1
        if self.has_next_page is None:
            self.has_next_page = expected_next
        elif self.has_next_page != expected_next:
            raise ValueError("hasNextPage disagrees with currentPage/totalPages")
        if self.has_prev_page is None:
            self.has_prev_page = expected_prev
        elif self.has_prev_page != expected_prev:
            raise ValueError("hasPrevPage disagrees with currentPage")
        return self

    @classmethod
    def single_page(cls, count: int) -> "PaginationMeta":
        """Metadata for an unpaginated response holding ``count`` records."""
        return build_pagination_meta(count, 1, max(count, 1))


def build_pagination_meta(total: int, page: int, limit: int) -> PaginationMeta:
    total_pages = math.ceil(total / limit) if limit else 0
    has_next = page < total_pages
    has_prev = page > 1
    return PaginationMeta(
        current_page=page,
        items_per_page=limit,
        total_items=total,
        total_pages=total_pages,
        has_next_page=has_next,
        has_prev_page=has_prev,
        next_page=page + 1 if has_next else None,
        prev_page=page - 1 if has_prev else None,
    )


def page_numbers(meta: PaginationMeta, max_pages: int = MAX_PAGES_TO_SHOW) -> List[PageToken]:
    """Page buttons to show: first, last, a window around the current page,
    and ellipses for the gaps."""
    total = meta.total_pages
    current = meta.current_page
    if total <= max_pages:
        return list(range(1, total + 1))

    pages: List[PageToken] = [1]
    if current > 3:
        pages.append(ELLIPSIS)
    start = max(2, current - 1)
    end = min(total - 1, current + 1)
    pages.extend(range(start, end + 1))
    if current < total - 2:
        pages.append(ELLIPSIS)
    pages.append(total)
    return pages


def item_range(meta: PaginationMeta) -> Tuple[int, int]:
    if meta.total_items == 0:
        return 0, 0
    start = (meta.current_page - 1) * meta.items_per_page + 1
    end = min(meta.current_page * meta.items_per_page, meta.total_items)
    return start, end
