"""Catalog package: API client, state store, and filter/paginate engine."""
from .client import CatalogClient
from .filters import (
    ALL_CATEGORIES,
    FilterCriteria,
    Page,
    apply,
    clamp_page,
    filter_products,
    next_page,
    paginate,
    parse_max_price,
    prev_page,
    total_pages,
)
from .store import CatalogState, CatalogStore, derive_categories

__all__ = [
    "CatalogClient",
    "CatalogState",
    "CatalogStore",
    "derive_categories",
    "ALL_CATEGORIES",
    "FilterCriteria",
    "Page",
    "apply",
    "clamp_page",
    "filter_products",
    "next_page",
    "paginate",
    "parse_max_price",
    "prev_page",
    "total_pages",
]
