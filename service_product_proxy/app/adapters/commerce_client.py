"""
Commerce product API client for the Product Proxy.
"""

from typing import TYPE_CHECKING, Any, Dict, Optional
from urllib.parse import quote
import time

import httpx

from shared.logging import get_logger
from shared.errors import UpstreamFetchError

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


PRODUCT_URL_TEMPLATE = (
    "https://{short_code}.api.commercecloud.salesforce.com"
    "/product/products/v1/organizations/{organization_id}/products/{product_id}"
)


class CommerceProductClient:
    """Client for retrieving raw product records from the commerce API."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        short_code: str,
        organization_id: str,
        *,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.http_client = http_client
        self.short_code = short_code
        self.organization_id = organization_id
        self.metrics = metrics
        self.logger = get_logger("product-proxy.commerce_client")

    def product_url(self, product_id: str) -> str:
        return PRODUCT_URL_TEMPLATE.format(
            short_code=self.short_code,
            organization_id=self.organization_id,
            product_id=quote(product_id, safe=""),
        )

    async def get_product(self, product_id: str, access_token: str) -> Dict[str, Any]:
        """Fetch the raw product representation for ``product_id``."""
        url = self.product_url(product_id)
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

        started = time.time()
        try:
            response = await self.http_client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            self._record("transport_error", started)
            self.logger.error("Product request failed", product_id=product_id, error=str(exc))
            raise UpstreamFetchError(
                details={"product_id": product_id, "http_error": str(exc)}
            ) from exc

        if not response.is_success:
            self._record("http_error", started)
            self.logger.error(
                "Product request rejected",
                product_id=product_id,
                status_code=response.status_code,
                response=response.text
            )
            raise UpstreamFetchError(
                f"Unexpected status {response.status_code}",
                details={"product_id": product_id, "status_code": response.status_code}
            )

        try:
            data = response.json()
        except ValueError as exc:
            self._record("malformed", started)
            raise UpstreamFetchError(
                "Product response is not valid JSON",
                details={"product_id": product_id}
            ) from exc

        self._record("ok", started)
        self.logger.debug("Product retrieved", product_id=product_id)
        return data

    def _record(self, outcome: str, started: float) -> None:
        if self.metrics is not None:
            self.metrics.record_upstream_request("product", outcome, time.time() - started)
