"""
Product Proxy service: HTTP façade over the commerce product API.
"""

from typing import Any, Dict, Optional

import httpx
from fastapi import Request
from fastapi.responses import PlainTextResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import ValidationError

from service_product_proxy.app.adapters.commerce_client import CommerceProductClient
from service_product_proxy.app.adapters.token_manager import TokenManager
from service_product_proxy.app.caching.expiring_cache import Clock, ExpiringCache
from service_product_proxy.app.domain.product_service import ProductService


SERVICE_NAME = "product-proxy"
PRODUCT_FAILURE_MESSAGE = "Failed to fetch product data"
BATCH_FAILURE_MESSAGE = "Failed to fetch products data"


class ProductProxyService(BaseService):
    """Product Proxy service implementation.

    Owns the upstream HTTP connection pool and both caches; all of them are
    created here and released in :meth:`shutdown`.
    """

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(SERVICE_NAME, config)

        self.http_client = httpx.AsyncClient(
            timeout=self.config.http_timeout_seconds,
            limits=httpx.Limits(
                max_connections=self.config.http_max_connections,
                max_keepalive_connections=self.config.http_max_connections,
            ),
            transport=transport,
        )

        self.token_cache = ExpiringCache("token", clock=clock, metrics=self.metrics)
        self.product_cache = ExpiringCache("product", clock=clock, metrics=self.metrics)

        self.token_manager = TokenManager(
            self.http_client,
            self.token_cache,
            self.config.client_id,
            self.config.client_secret,
            scope=self.config.oauth_scope,
            token_url=self.config.token_url,
            metrics=self.metrics,
        )
        self.commerce_client = CommerceProductClient(
            self.http_client,
            self.config.short_code,
            self.config.organization_id,
            metrics=self.metrics,
        )
        self.product_service = ProductService(
            self.token_manager,
            self.commerce_client,
            self.product_cache,
            ttl_seconds=self.config.product_cache_ttl_seconds,
            image_host=self.config.image_host,
        )

        if not (self.config.client_id and self.config.client_secret):
            self.logger.warning("Commerce API credentials are not configured")

        self._setup_product_routes()

    async def shutdown(self) -> None:
        await self.http_client.aclose()
        self.token_cache.clear()
        self.product_cache.clear()

    async def _check_dependencies(self) -> Dict[str, Any]:
        return {
            "token_cache": self.token_cache.stats(),
            "product_cache": self.product_cache.stats(),
        }

    def _setup_product_routes(self):
        """Set up product routes."""

        @self.app.get("/api/product/{product_id}")
        async def get_product(product_id: str):
            """Return the shaped product for a single id."""
            try:
                return await self.product_service.get_product(product_id)
            except Exception as exc:
                self._log_failure("Product fetch failed", exc, product_id=product_id)
                return PlainTextResponse(PRODUCT_FAILURE_MESSAGE, status_code=500)

        @self.app.post("/api/products")
        async def get_products(request: Request):
            """Return shaped products keyed by id; failed ids carry an error marker."""
            product_ids = await self._read_product_ids(request)

            try:
                return await self.product_service.get_products(product_ids)
            except Exception as exc:
                self._log_failure("Batch fetch failed", exc, requested=len(product_ids))
                return PlainTextResponse(BATCH_FAILURE_MESSAGE, status_code=500)

    async def _read_product_ids(self, request: Request) -> list:
        try:
            body = await request.json()
        except ValueError:
            body = None

        product_ids = body.get("productIds") if isinstance(body, dict) else None
        if not isinstance(product_ids, list):
            raise ValidationError(
                "productIds must be an array",
                details={"received": type(product_ids).__name__},
            )
        return product_ids

    def _log_failure(self, event: str, exc: Exception, **context: Any) -> None:
        code = getattr(exc, "code", "INTERNAL_ERROR")
        self.logger.error(
            event,
            code=code,
            error=str(exc),
            details=getattr(exc, "details", {}),
            **context,
        )
        self.metrics.record_error(code)


def create_app():
    """Create FastAPI application."""
    service = ProductProxyService()
    return service.app


if __name__ == "__main__":
    service = ProductProxyService()
    service.run()
