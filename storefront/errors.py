"""
Storefront errors.

Message constants are centralized here so state fields and logs use the
same wording. Exceptions never cross the store boundary: NetworkError is
turned into catalog state, PersistenceError is absorbed by the cart
persistence adapter.
"""

from typing import Any

# Catalog errors
ERROR_LOAD_FAILED = "Failed to load"
ERROR_NETWORK = "Network error"
ERROR_PRODUCT_NOT_FOUND = "Product not found"
ERROR_INVALID_PAYLOAD = "Invalid catalog response"

# Persistence errors
ERROR_STORAGE_UNAVAILABLE = "Storage unavailable"
ERROR_STORAGE_CORRUPTED = "Stored cart is corrupted"


class StorefrontError(Exception):
    """Base error for the storefront state engine."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        retryable: bool = False,
        raw_error: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.retryable = retryable
        self.raw_error = raw_error


class NetworkError(StorefrontError):
    """Transport failure or non-2xx response from the catalog API."""

    def __init__(
        self,
        message: str = ERROR_NETWORK,
        status_code: int | None = None,
        raw_error: Any = None,
    ) -> None:
        super().__init__(message, code="NETWORK", retryable=True, raw_error=raw_error)
        self.status_code = status_code


class PersistenceError(StorefrontError):
    """Durable storage read/write failure."""

    def __init__(self, message: str = ERROR_STORAGE_UNAVAILABLE, raw_error: Any = None) -> None:
        super().__init__(message, code="PERSISTENCE", retryable=False, raw_error=raw_error)


__all__ = [
    "ERROR_LOAD_FAILED",
    "ERROR_NETWORK",
    "ERROR_PRODUCT_NOT_FOUND",
    "ERROR_INVALID_PAYLOAD",
    "ERROR_STORAGE_UNAVAILABLE",
    "ERROR_STORAGE_CORRUPTED",
    "StorefrontError",
    "NetworkError",
    "PersistenceError",
]
