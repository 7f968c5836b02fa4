"""Client-side storefront state engine: cart, catalog, filters."""
from storefront.app import Storefront, get_storefront
from storefront.cart import CartEntry, CartState, CartStore
from storefront.catalog import CatalogState, CatalogStore, FilterCriteria, Page
from storefront.errors import NetworkError, PersistenceError, StorefrontError
from storefront.models import DetailError, FetchStatus, Product, Rating

__all__ = [
    "Storefront",
    "get_storefront",
    "CartEntry",
    "CartState",
    "CartStore",
    "CatalogState",
    "CatalogStore",
    "FilterCriteria",
    "Page",
    "NetworkError",
    "PersistenceError",
    "StorefrontError",
    "DetailError",
    "FetchStatus",
    "Product",
    "Rating",
]
