"""Catalog models - Pydantic models for data received from the catalog API."""
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

from storefront.money import to_decimal as _to_decimal

ProductId = Union[int, str]


class FetchStatus(str, Enum):
    """Lifecycle of a catalog list fetch."""
    IDLE = "idle"
    LOADING = "loading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Rating(BaseModel):
    """Aggregated customer rating."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    rate: float = 0.0
    count: int = 0


class Product(BaseModel):
    """Product as received from the catalog. Never mutated, only replaced."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: ProductId
    title: str
    price: Decimal
    category: str = ""
    description: str = ""
    image: str = ""
    rating: Optional[Rating] = None

    @field_validator("price", mode="before")
    @classmethod
    def convert_price_to_decimal(cls, v):
        price = _to_decimal(v)
        if price < 0:
            raise ValueError("price must be non-negative")
        return price

    @property
    def key(self) -> str:
        """Cart mapping key for this product."""
        return product_key(self.id)

    @property
    def rating_label(self) -> str:
        """Rating as shown on the detail page, e.g. "3.9 (120)"."""
        if self.rating is None:
            return "N/A (0)"
        return f"{self.rating.rate} ({self.rating.count})"


class DetailError(BaseModel):
    """Placeholder stored in place of a product whose detail fetch failed."""
    model_config = ConfigDict(frozen=True)

    error: str


def product_key(product_id: ProductId) -> str:
    """
    Normalize a product id into a mapping key.

    JSON object keys are strings, so both 7 and "7" map to "7" and a cart
    restored from storage is addressed by the same ids as a live one.
    """
    return str(product_id)
