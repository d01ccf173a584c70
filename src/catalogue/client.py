"""Catalogue API client with a short-lived response cache.

The catalogue is an external, read-only data source. Responses are cached per
URL for a few minutes; nothing else about consistency is promised.
"""

import time
from functools import lru_cache
from typing import Any, Callable
from urllib.parse import quote

import httpx
import structlog

from catalogue.models import Product
from shared.config import get_settings
from shared.errors import CatalogError, ProductNotFoundError

logger = structlog.get_logger(__name__)

DEFAULT_CACHE_TTL = 5 * 60


class CatalogClient:
    """Fetches products from the catalogue API."""

    def __init__(
        self,
        base_url: str,
        cache_ttl: float = DEFAULT_CACHE_TTL,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.cache_ttl = cache_ttl
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._clock = clock
        self._cache: dict[str, tuple[float, Any]] = {}

    async def list_products(self, limit: int | None = None) -> list[Product]:
        path = "/products" if limit is None else f"/products?limit={limit}"
        return [Product.from_api(item) for item in await self._get_json(path)]

    async def get_product(self, product_id) -> Product:
        data = await self._get_json(f"/products/{quote(str(product_id), safe='')}", not_found=product_id)
        if not data:
            # The public catalogue answers 200 with an empty body for unknown ids
            raise ProductNotFoundError(product_id)
        return Product.from_api(data)

    async def list_by_category(self, category: str) -> list[Product]:
        data = await self._get_json(f"/products/category/{quote(category, safe='')}")
        return [Product.from_api(item) for item in data]

    async def list_categories(self) -> list[str]:
        return list(await self._get_json("/products/categories"))

    def clear_cache(self) -> None:
        self._cache.clear()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str, not_found=None) -> Any:
        url = f"{self.base_url}{path}"
        now = self._clock()

        cached = self._cache.get(url)
        if cached is not None:
            stored_at, data = cached
            if now - stored_at < self.cache_ttl:
                return data
            del self._cache[url]

        try:
            response = await self._client.get(url, headers={"Accept": "application/json"})
        except httpx.HTTPError as exc:
            logger.warning("catalog_request_failed", url=url, error=str(exc))
            raise CatalogError(f"Catalogue unreachable: {exc}") from exc

        if response.status_code == 404 and not_found is not None:
            raise ProductNotFoundError(not_found)
        if response.is_error:
            logger.warning("catalog_error_response", url=url, status_code=response.status_code)
            raise CatalogError(f"Catalogue answered {response.status_code} for {path}")

        try:
            data = response.json() if response.content else None
        except ValueError as exc:
            raise CatalogError(f"Catalogue sent invalid JSON for {path}") from exc
        self._cache[url] = (now, data)
        return data


@lru_cache
def get_catalog() -> CatalogClient:
    """Return the process-wide catalogue client configured from settings."""
    settings = get_settings()
    return CatalogClient(
        settings.CATALOG_BASE_URL,
        cache_ttl=settings.CATALOG_CACHE_TTL_SECONDS,
        timeout=settings.CATALOG_TIMEOUT_SECONDS,
    )
