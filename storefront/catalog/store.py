"""
Catalog Store

Holds the product list, the single-product detail, the list fetch status
and error. Transitions are plain synchronous methods; the async loaders
only await the catalog client and then hand the outcome to a transition.
That keeps the state machine testable without any I/O.

List flow:   idle -> loading -> succeeded | failed, and loading again on
             refetch. Items from the previous success stay in place while a
             refetch is in flight.
Detail flow: independent of the list. product_detail is None while a
             request is in flight, then a Product or a DetailError.
"""

from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, List, Optional, Tuple, Union

from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

from storefront.errors import ERROR_LOAD_FAILED, NetworkError, StorefrontError
from storefront.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging
from storefront.models import DetailError, FetchStatus, Product, ProductId
from .client import CatalogClient

logger = get_logger(__name__)

ProductDetail = Union[Product, DetailError, None]
CatalogListener = Callable[["CatalogState"], None]


def derive_categories(items: Iterable[Product]) -> List[str]:
    """Distinct categories in first-seen order."""
    return list(dict.fromkeys(product.category for product in items))


@dataclass(frozen=True)
class CatalogState:
    """Snapshot of catalog state. Every transition produces a new snapshot."""
    items: Tuple[Product, ...] = field(default_factory=tuple)
    status: FetchStatus = FetchStatus.IDLE
    error: Optional[str] = None
    product_detail: ProductDetail = None

    @property
    def categories(self) -> List[str]:
        return derive_categories(self.items)


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, StorefrontError) and exc.retryable


class CatalogStore:
    """
    Catalog state machine.

    Args:
        client: Catalog client (anything with async fetch_list/fetch_by_id)
        fetch_attempts: List fetch attempts; 1 disables retrying
        discard_stale_details: Drop detail responses superseded by a newer
            request. When False the last response to arrive wins.
        retry_wait: tenacity wait strategy between list attempts
    """

    def __init__(
        self,
        client: CatalogClient,
        fetch_attempts: int = 1,
        discard_stale_details: bool = False,
        retry_wait: Optional[wait_base] = None,
    ):
        self.client = client
        self.fetch_attempts = max(1, fetch_attempts)
        self.discard_stale_details = discard_stale_details
        self.retry_wait = retry_wait or wait_exponential(multiplier=0.5, max=4)
        self._state = CatalogState()
        self._detail_seq = 0
        self._listeners: List[CatalogListener] = []

    @property
    def state(self) -> CatalogState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._state.status == FetchStatus.LOADING

    @property
    def detail_loading(self) -> bool:
        return self._detail_seq > 0 and self._state.product_detail is None

    @property
    def detail_error(self) -> Optional[str]:
        detail = self._state.product_detail
        return detail.error if isinstance(detail, DetailError) else None

    def subscribe(self, listener: CatalogListener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def request_list(self) -> None:
        self._set(status=FetchStatus.LOADING, error=None)

    def list_succeeded(self, products: Iterable[Product]) -> None:
        self._set(status=FetchStatus.SUCCEEDED, items=tuple(products))

    def list_failed(self, message: Optional[str]) -> None:
        self._set(status=FetchStatus.FAILED, error=message or ERROR_LOAD_FAILED)

    def request_detail(self, product_id: ProductId) -> int:
        """Clear the current detail and return this request's sequence number."""
        self._detail_seq += 1
        logger.debug(f"Detail request #{self._detail_seq} for {sanitize_id_for_logging(product_id)}")
        self._set(product_detail=None)
        return self._detail_seq

    def detail_succeeded(self, product: Product, seq: Optional[int] = None) -> bool:
        """Store a loaded product. Returns False if the response was discarded."""
        if self._is_stale(seq):
            return False
        self._set(product_detail=product)
        return True

    def detail_failed(self, message: Optional[str], seq: Optional[int] = None) -> bool:
        """Store a detail error. Returns False if the response was discarded."""
        if self._is_stale(seq):
            return False
        self._set(product_detail=DetailError(error=message or ERROR_LOAD_FAILED))
        return True

    # ------------------------------------------------------------------
    # Async loaders
    # ------------------------------------------------------------------

    async def fetch_products(self) -> CatalogState:
        """Load the product list. Failures end up in state, never raised."""
        self.request_list()
        try:
            products = await self._fetch_list()
        except NetworkError as e:
            logger.warning(f"Catalog list fetch failed: {sanitize_string_for_logging(e.message)}")
            self.list_failed(e.message)
        else:
            logger.info(f"Catalog loaded: {len(products)} products")
            self.list_succeeded(products)
        return self._state

    async def fetch_product_by_id(self, product_id: ProductId) -> ProductDetail:
        """Load one product's detail. Failures end up in state, never raised."""
        seq = self.request_detail(product_id)
        try:
            product = await self.client.fetch_by_id(product_id)
        except NetworkError as e:
            logger.warning(
                f"Product {sanitize_id_for_logging(product_id)} fetch failed: "
                f"{sanitize_string_for_logging(e.message)}"
            )
            self.detail_failed(e.message, seq)
        else:
            self.detail_succeeded(product, seq)
        return self._state.product_detail

    async def _fetch_list(self) -> List[Product]:
        if self.fetch_attempts == 1:
            return await self.client.fetch_list()

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.fetch_attempts),
            wait=self.retry_wait,
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.info(f"Retrying catalog list (attempt {attempt.retry_state.attempt_number})")
                products = await self.client.fetch_list()
        return products

    # ------------------------------------------------------------------

    def _is_stale(self, seq: Optional[int]) -> bool:
        if not self.discard_stale_details or seq is None or seq == self._detail_seq:
            return False
        logger.info(f"Discarding stale detail response #{seq} (latest #{self._detail_seq})")
        return True

    def _set(self, **changes) -> None:
        self._state = replace(self._state, **changes)
        logger.debug(f"Catalog state: status={self._state.status.value}")
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("Catalog listener failed")
