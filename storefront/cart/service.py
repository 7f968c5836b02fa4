"""Cart store: owns the cart mapping and persists it after every mutation."""
import math
from decimal import Decimal
from typing import Callable, List, Optional

from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.models import Product, ProductId, product_key
from storefront.money import format_money, to_float
from .models import CartEntry, CartState
from .storage import CartPersistence

logger = get_logger(__name__)


def _coerce_qty(qty) -> int:
    """Whole quantity of at least 1; unusable input (NaN, inf, text) becomes 1."""
    try:
        value = float(qty)
    except (TypeError, ValueError, OverflowError):
        return 1
    if not math.isfinite(value):
        return 1
    return max(1, int(value))


CartListener = Callable[[CartState], None]


class CartStore:
    """
    Manages the shopping cart for one session.

    Features:
    - Normalized mapping keyed by product id, quantity floor of 1
    - Restores the last saved cart on construction
    - Saves a snapshot after every mutation (best-effort)
    - Subscribers are notified after each mutation

    Mutations are synchronous and never raise.
    """

    def __init__(self, persistence: CartPersistence):
        self.persistence = persistence
        self._state = persistence.load() or CartState()
        self._listeners: List[CartListener] = []

    @property
    def state(self) -> CartState:
        """Copy of the current cart; mutate only through the store."""
        return self._state.copy()

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def add_to_cart(self, product: Product) -> None:
        """Add one unit; an existing entry keeps its first stored product."""
        entry = self._state.items.get(product.key)
        if entry is not None:
            entry.qty += 1
        else:
            self._state.items[product.key] = CartEntry(product=product, qty=1)
        logger.debug(f"Cart add {sanitize_id_for_logging(product.key)}")
        self._commit()

    def remove_from_cart(self, product_id: ProductId) -> None:
        """Remove the entry entirely; absent ids are ignored."""
        self._state.items.pop(product_key(product_id), None)
        self._commit()

    def set_quantity(self, product_id: ProductId, qty: int) -> None:
        """Set quantity of an existing entry, clamped to at least 1."""
        entry = self._state.items.get(product_key(product_id))
        if entry is not None:
            entry.qty = _coerce_qty(qty)
        self._commit()

    def clear_cart(self) -> None:
        """Remove all items from the cart."""
        self._state.items.clear()
        self._commit()

    def get_entry(self, product_id: ProductId) -> Optional[CartEntry]:
        entry = self._state.get(product_id)
        return CartEntry(product=entry.product, qty=entry.qty) if entry else None

    def entries(self) -> List[CartEntry]:
        return self.state.entries

    @property
    def total_price(self) -> Decimal:
        return self._state.total_price

    @property
    def total_quantity(self) -> int:
        return self._state.total_quantity

    @property
    def is_empty(self) -> bool:
        return len(self._state) == 0

    def get_cart_summary(self) -> dict:
        """Cart summary for display layers."""
        if self.is_empty:
            return {
                "is_empty": True,
                "total_items": 0,
                "items": [],
                "total": 0.0,
                "total_display": format_money(0),
            }

        return {
            "is_empty": False,
            "total_items": self.total_quantity,
            "items": [
                {
                    "product_id": entry.product.id,
                    "title": entry.product.title,
                    "image": entry.product.image,
                    "qty": entry.qty,
                    "unit_price": to_float(entry.product.price),
                    "total": to_float(entry.total_price),
                }
                for entry in self._state.items.values()
            ],
            "total": to_float(self.total_price),
            "total_display": format_money(self.total_price),
        }

    def _commit(self) -> None:
        """Persist the new state, then notify subscribers."""
        self.persistence.save(self._state)
        snapshot = self.state
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Cart listener failed")
