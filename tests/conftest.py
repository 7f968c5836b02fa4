"""Pytest configuration and fixtures"""
import os
from typing import Dict, List, Optional

import pytest

# Keep tests away from the real catalog and the user's storage file
os.environ.setdefault("CATALOG_API_URL", "https://catalog.test")
os.environ.setdefault("CART_STORAGE_BACKEND", "memory")

from storefront.cart import CartPersistence, CartStore, MemoryStorage  # noqa: E402
from storefront.errors import NetworkError  # noqa: E402
from storefront.models import Product  # noqa: E402


def make_product(id=1, title="Red Shirt", price=20, category="clothing", **extra) -> Product:
    """Build a Product the way the catalog API returns it."""
    data = {
        "id": id,
        "title": title,
        "price": price,
        "category": category,
        "description": extra.pop("description", f"{title} description"),
        "image": extra.pop("image", f"https://img.test/{id}.jpg"),
    }
    data.update(extra)
    return Product.model_validate(data)


@pytest.fixture
def sample_product_data():
    """Sample product as JSON from the catalog API"""
    return {
        "id": 1,
        "title": "Fjallraven - Foldsack No. 1 Backpack, Fits 15 Laptops",
        "price": 109.95,
        "description": "Your perfect pack for everyday use and walks in the forest.",
        "category": "men's clothing",
        "image": "https://fakestoreapi.com/img/81fPKd-2AYL._AC_SL1500_.jpg",
        "rating": {"rate": 3.9, "count": 120},
    }


@pytest.fixture
def red_shirt():
    return make_product(1, "Red Shirt", 20, "clothing")


@pytest.fixture
def blue_hat():
    return make_product(2, "Blue Hat", 5, "accessories")


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def persistence(memory_storage):
    return CartPersistence(memory_storage, key="cartState")


@pytest.fixture
def cart_store(persistence):
    return CartStore(persistence)


class FakeCatalogClient:
    """In-memory stand-in for CatalogClient."""

    def __init__(self, products: Optional[List[Product]] = None, list_error: Optional[str] = None):
        self.products: Dict[str, Product] = {str(p.id): p for p in (products or [])}
        self.list_error = list_error
        self.list_calls = 0
        self.detail_calls: List = []

    async def fetch_list(self) -> List[Product]:
        self.list_calls += 1
        if self.list_error is not None:
            raise NetworkError(self.list_error)
        return list(self.products.values())

    async def fetch_by_id(self, product_id) -> Product:
        self.detail_calls.append(product_id)
        product = self.products.get(str(product_id))
        if product is None:
            raise NetworkError("Request failed with status code 404", status_code=404)
        return product


@pytest.fixture
def catalog_products(red_shirt, blue_hat):
    return [
        red_shirt,
        blue_hat,
        make_product(3, "Gold Ring", 168, "jewelery"),
        make_product(4, "Slim Shirt", 15.99, "clothing"),
        make_product(5, "SSD 1TB", 109, "electronics"),
    ]


@pytest.fixture
def fake_client(catalog_products):
    return FakeCatalogClient(catalog_products)


@pytest.fixture
def product_factory():
    """Factory fixture for catalog products."""
    return make_product
