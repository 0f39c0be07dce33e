"""Fakestore product catalog client."""

import logging
from typing import List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from config import CATALOG_BASE_URL, CATALOG_TIMEOUT
from models import Product

logger = logging.getLogger(__name__)

_products = TypeAdapter(List[Product])


class CatalogError(Exception):
    """Catalog could not be fetched. Safe to retry."""


class CatalogNetworkError(CatalogError):
    """Transport failure or non-2xx response."""


class CatalogDecodeError(CatalogError):
    """Response body was not a valid product list."""


class CatalogClient:
    def __init__(
        self,
        base_url: str = CATALOG_BASE_URL,
        timeout: float = CATALOG_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.client = client or httpx.Client(
            base_url=base_url,
            timeout=timeout,
            follow_redirects=True,
            headers={"Accept": "application/json"},
        )

    def fetch_products(self) -> List[Product]:
        try:
            response = self.client.get("/products")
        except httpx.HTTPError as e:
            raise CatalogNetworkError(f"Error fetching products: {e}") from e

        if not response.is_success:
            logger.warning(f"Catalog returned HTTP {response.status_code}")
            raise CatalogNetworkError(f"Server error (HTTP {response.status_code})")

        try:
            products = _products.validate_json(response.content)
        except ValidationError as e:
            logger.error(f"Error decoding products: {e}")
            raise CatalogDecodeError(f"Error decoding products: {e.error_count()} invalid field(s)") from e

        logger.info(f"Fetched {len(products)} products from catalog")
        return products

    def close(self) -> None:
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        self.close()
