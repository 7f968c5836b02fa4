"""Storefront wiring: builds the cart and catalog stores from settings."""
from typing import Optional

from storefront.cart import CartPersistence, CartStore, create_storage
from storefront.catalog import CatalogClient, CatalogStore, FilterCriteria, Page, apply
from storefront.config import Settings, get_settings
from storefront.logging import get_logger

logger = get_logger(__name__)


class Storefront:
    """
    Presentation boundary for the storefront.

    Exposes the cart store (actions + derived totals), the catalog store
    (read model + async loaders) and browse(), which runs the
    filter/paginate engine over the currently loaded items.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        cart: Optional[CartStore] = None,
        catalog: Optional[CatalogStore] = None,
    ):
        self.settings = settings or get_settings()
        self.cart = cart or CartStore(
            CartPersistence(create_storage(self.settings), key=self.settings.cart_storage_key)
        )
        self.catalog = catalog or CatalogStore(
            CatalogClient(self.settings.catalog_api_url, timeout=self.settings.catalog_timeout),
            fetch_attempts=self.settings.catalog_fetch_attempts,
            discard_stale_details=self.settings.catalog_discard_stale_details,
        )

    def browse(self, criteria: Optional[FilterCriteria] = None, page: int = 1) -> Page:
        """Current catalog items, filtered and paginated with the configured page size."""
        return apply(self.catalog.state.items, criteria or FilterCriteria(), page, self.settings.page_size)

    async def aclose(self) -> None:
        """Release the catalog HTTP client."""
        client = self.catalog.client
        if hasattr(client, "aclose"):
            await client.aclose()


# Singleton instance
_storefront: Optional[Storefront] = None


def get_storefront() -> Storefront:
    """Get Storefront singleton."""
    global _storefront
    if _storefront is None:
        _storefront = Storefront()
        logger.info(
            f"Storefront ready (catalog={_storefront.settings.catalog_api_url}, "
            f"storage={_storefront.settings.cart_storage_backend})"
        )
    return _storefront
