"""
Product fetch orchestration: cache lookup, upstream retrieval and fan-out.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Iterable

from shared.config import DEFAULT_IMAGE_HOST
from shared.logging import get_logger

from service_product_proxy.app.adapters.commerce_client import CommerceProductClient
from service_product_proxy.app.adapters.token_manager import TokenManager
from service_product_proxy.app.caching import ExpiringCache
from service_product_proxy.app.domain.shaping import ShapedProduct, shape_product


DEFAULT_PRODUCT_TTL = 24 * 60 * 60
FETCH_ERROR_MARKER = {"error": "Failed to fetch data"}


class ProductService:
    """Serve shaped products from cache, refreshing from upstream on miss.

    Concurrent misses for the same product are not coalesced: each caller
    fetches independently and the last write wins.
    """

    def __init__(
        self,
        token_manager: TokenManager,
        commerce_client: CommerceProductClient,
        cache: ExpiringCache,
        *,
        ttl_seconds: float = DEFAULT_PRODUCT_TTL,
        image_host: str = DEFAULT_IMAGE_HOST,
    ) -> None:
        self.token_manager = token_manager
        self.commerce_client = commerce_client
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.image_host = image_host
        self.logger = get_logger("product-proxy.product_service")

    async def get_product(self, product_id: str) -> ShapedProduct:
        """Return the shaped product for ``product_id``.

        Raises AuthError when no token can be obtained and UpstreamFetchError
        (including MalformedUpstreamData) when retrieval or shaping fails.
        """
        now = self.cache.now()
        cached = self.cache.get(product_id, now=now)
        if cached is not None:
            return cached

        access_token = await self.token_manager.get_access_token()
        raw = await self.commerce_client.get_product(product_id, access_token)
        shaped = shape_product(raw, self.image_host)

        self.cache.put_for(product_id, shaped, self.ttl_seconds, now=now)
        self.logger.info("Product cached", product_id=product_id, colors=len(shaped))
        return shaped

    async def get_products(self, product_ids: Iterable[Any]) -> Dict[str, Any]:
        """Fetch every product concurrently and merge the per-id outcomes.

        Each id maps to its shaped product, or to ``FETCH_ERROR_MARKER`` when
        that fetch failed. All fetches settle before the result is built.
        """
        ids = [str(product_id) for product_id in product_ids]
        outcomes = await asyncio.gather(
            *(self.get_product(product_id) for product_id in ids),
            return_exceptions=True,
        )

        merged: Dict[str, Any] = {}
        failures = 0
        for product_id, outcome in zip(ids, outcomes):
            if isinstance(outcome, BaseException):
                failures += 1
                self.logger.error(
                    "Batch item fetch failed",
                    product_id=product_id,
                    error_type=type(outcome).__name__,
                    error=str(outcome),
                )
                merged[product_id] = dict(FETCH_ERROR_MARKER)
                continue
            merged[product_id] = outcome

        self.logger.info("Batch fetch settled", requested=len(ids), failed=failures)
        return merged
