"""
Pagination helpers shared by the listing operations.
"""

import math
from dataclasses import dataclass

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class PageRequest:
    """A 1-indexed page request after clamping."""
    page: int
    page_size: int
    
    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size
    
    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.page_size)


def clamp_page(
    page: int,
    page_size: int,
    default_page_size: int = DEFAULT_PAGE_SIZE,
    max_page_size: int = MAX_PAGE_SIZE,
) -> PageRequest:
    """
    Normalise user supplied paging parameters.
    
    A page below 1 becomes 1. A page size outside [1, max_page_size] falls
    back to the default rather than to the nearest bound.
    """
    if page < 1:
        page = 1
    if page_size < 1 or page_size > max_page_size:
        page_size = default_page_size
    return PageRequest(page=page, page_size=page_size)


@dataclass
class Page:
    """One page of a listing plus the totals needed to navigate it"""
    items: list
    total: int
    page: int
    page_size: int
    total_pages: int
    
    @classmethod
    def build(cls, items: list, total: int, request: PageRequest) -> "Page":
        return cls(
            items=items,
            total=total,
            page=request.page,
            page_size=request.page_size,
            total_pages=request.total_pages(total),
        )
