"""Filter/Paginate Engine - pure functions over the catalog item list.

Nothing here holds state. Keeping the current page within
1..total_pages is the caller's job (see clamp_page).
"""
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence, Tuple, Union

from storefront.models import Product
from storefront.money import parse_decimal

ALL_CATEGORIES = "all"


@dataclass(frozen=True)
class FilterCriteria:
    """Search, category and max price filters, combined with AND."""
    search_text: str = ""
    category: str = ALL_CATEGORIES
    max_price: Optional[Decimal] = None


@dataclass(frozen=True)
class Page:
    """One page of filtered products."""
    items: Tuple[Product, ...]
    page: int
    page_size: int
    total: int
    total_pages: int

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def parse_max_price(raw: Union[str, int, float, Decimal, None]) -> Optional[Decimal]:
    """Max price as typed by the user; empty or non-numeric means no limit."""
    return parse_decimal(raw)


def filter_products(items: Sequence[Product], criteria: FilterCriteria) -> Tuple[Product, ...]:
    result = tuple(items)

    # 1) search: case-insensitive substring of the title
    if criteria.search_text.strip():
        needle = criteria.search_text.lower()
        result = tuple(p for p in result if needle in p.title.lower())

    # 2) category: exact match
    if criteria.category != ALL_CATEGORIES:
        result = tuple(p for p in result if p.category == criteria.category)

    # 3) price ceiling, inclusive
    if criteria.max_price is not None:
        result = tuple(p for p in result if p.price <= criteria.max_price)

    return result


def total_pages(count: int, page_size: int) -> int:
    """Number of pages for count items; never less than 1."""
    _check_page_size(page_size)
    return max(1, math.ceil(count / page_size))


def paginate(items: Sequence[Product], page: int, page_size: int) -> Page:
    """
    Slice one page out of items.

    The page is not corrected: a page past the end yields an empty slice
    with the real total_pages so the caller can reset.
    """
    _check_page_size(page_size)
    start = max(0, (page - 1) * page_size)
    end = max(0, page * page_size)
    return Page(
        items=tuple(items[start:end]),
        page=page,
        page_size=page_size,
        total=len(items),
        total_pages=total_pages(len(items), page_size),
    )


def apply(items: Sequence[Product], criteria: FilterCriteria, page: int, page_size: int) -> Page:
    """Filter items, then return the requested page."""
    return paginate(filter_products(items, criteria), page, page_size)


def clamp_page(page: int, pages: int) -> int:
    """Reset to page 1 when filtering left the current page out of range."""
    return 1 if page > pages or page < 1 else page


def next_page(page: int, pages: int) -> int:
    return min(pages, page + 1)


def prev_page(page: int) -> int:
    return max(1, page - 1)


def _check_page_size(page_size: int) -> None:
    if page_size < 1:
        raise ValueError("page_size must be a positive integer")
