"""Cart models with Decimal-based pricing."""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

from storefront.models import Product, ProductId, product_key
from storefront.money import multiply


@dataclass
class CartEntry:
    """Single product line in the cart."""
    product: Product
    qty: int = 1

    def __post_init__(self):
        # Quantity floor: an entry never holds less than one unit
        self.qty = max(1, int(self.qty))

    @property
    def total_price(self) -> Decimal:
        """Price for all units of this line."""
        return multiply(self.product.price, self.qty)

    def to_dict(self) -> dict:
        """Convert to dictionary for the stored snapshot."""
        return {
            "product": self.product.model_dump(mode="json"),
            "qty": self.qty,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartEntry":
        """Create from dictionary."""
        return cls(
            product=Product.model_validate(data["product"]),
            qty=int(data["qty"]),
        )


@dataclass
class CartState:
    """Shopping cart keyed by product id."""
    items: Dict[str, CartEntry] = field(default_factory=dict)

    def get(self, product_id: ProductId) -> Optional[CartEntry]:
        return self.items.get(product_key(product_id))

    def __contains__(self, product_id: ProductId) -> bool:
        return product_key(product_id) in self.items

    def __len__(self) -> int:
        return len(self.items)

    @property
    def entries(self) -> List[CartEntry]:
        return list(self.items.values())

    @property
    def total_quantity(self) -> int:
        """Total number of units in cart."""
        return sum(entry.qty for entry in self.items.values())

    @property
    def total_price(self) -> Decimal:
        """Sum of price * qty over all entries."""
        return sum((entry.total_price for entry in self.items.values()), Decimal("0"))

    def copy(self) -> "CartState":
        """Shallow copy; entries are copied, products are shared (immutable)."""
        return CartState(
            items={key: CartEntry(product=entry.product, qty=entry.qty) for key, entry in self.items.items()}
        )

    def to_dict(self) -> dict:
        """Convert to the stored snapshot shape: {"items": {id: entry}}."""
        return {"items": {key: entry.to_dict() for key, entry in self.items.items()}}

    @classmethod
    def from_dict(cls, data: dict) -> "CartState":
        """
        Create from a stored snapshot.

        Raises KeyError/TypeError/ValueError (or pydantic ValidationError,
        a ValueError subclass) when the snapshot does not have the expected
        shape; callers treat that as corruption.
        """
        raw_items = data["items"]
        if not isinstance(raw_items, dict):
            raise TypeError("cart snapshot items must be an object")
        items = {}
        for raw in raw_items.values():
            entry = CartEntry.from_dict(raw)
            # Re-key from the product so keys and ids cannot disagree
            items[entry.product.key] = entry
        return cls(items=items)
