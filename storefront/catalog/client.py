"""Catalog Client - read-only access to the remote product catalog.

Two one-shot calls, no state and no retries. Every failure (transport,
non-2xx status, unusable body) is raised as NetworkError.
"""

from typing import Any, List

import httpx
from pydantic import ValidationError

from storefront.errors import ERROR_INVALID_PAYLOAD, ERROR_NETWORK, ERROR_PRODUCT_NOT_FOUND, NetworkError
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.models import Product, ProductId

logger = get_logger(__name__)


class CatalogClient:
    """HTTP client for the catalog API (GET /products, GET /products/{id})."""

    def __init__(
        self,
        base_url: str,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        # HTTP client (lazy init unless injected)
        self._http_client = http_client

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Lazy creation of the shared httpx client."""
        if self._http_client is None:
            if self.timeout is not None:
                self._http_client = httpx.AsyncClient(timeout=self.timeout)
            else:
                self._http_client = httpx.AsyncClient()
        return self._http_client

    async def _get_json(self, path: str) -> Any:
        client = await self._get_http_client()
        url = f"{self.base_url}{path}"
        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            message = f"Request failed with status code {status}"
            if status == 404:
                message = ERROR_PRODUCT_NOT_FOUND
            raise NetworkError(message, status_code=status, raw_error=e) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NetworkError(str(e) or ERROR_NETWORK, raw_error=e) from e

        # FakeStore answers unknown ids with 200 and an empty body
        if not response.content or not response.content.strip():
            raise NetworkError(ERROR_PRODUCT_NOT_FOUND, status_code=response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise NetworkError(ERROR_INVALID_PAYLOAD, status_code=response.status_code, raw_error=e) from e

    async def fetch_list(self) -> List[Product]:
        """Fetch the full product list."""
        data = await self._get_json("/products")
        if not isinstance(data, list):
            raise NetworkError(ERROR_INVALID_PAYLOAD)
        try:
            return [Product.model_validate(item) for item in data]
        except ValidationError as e:
            logger.warning(f"Catalog list failed validation: {e.error_count()} errors")
            raise NetworkError(ERROR_INVALID_PAYLOAD, raw_error=e) from e

    async def fetch_by_id(self, product_id: ProductId) -> Product:
        """Fetch one product by id."""
        data = await self._get_json(f"/products/{product_id}")
        if not isinstance(data, dict):
            raise NetworkError(ERROR_INVALID_PAYLOAD)
        try:
            return Product.model_validate(data)
        except ValidationError as e:
            logger.warning(
                f"Catalog product {sanitize_id_for_logging(product_id)} failed validation: "
                f"{e.error_count()} errors"
            )
            raise NetworkError(ERROR_INVALID_PAYLOAD, raw_error=e) from e

    async def aclose(self) -> None:
        """Close http client if created."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
