"""
Unit tests for product fetch orchestration.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from conftest import make_image_group
from service_product_proxy.app.caching import ExpiringCache
from service_product_proxy.app.domain.product_service import (
    DEFAULT_PRODUCT_TTL,
    FETCH_ERROR_MARKER,
    ProductService,
)
from shared.errors import AuthError, MalformedUpstreamData, UpstreamFetchError


def product_with_color(color):
    return {"imageGroups": [make_image_group(color, f"https://a/{color.lower()}.jpg")]}


class TestProductService:
    """Test cases for ProductService."""

    @pytest.fixture
    def token_manager(self):
        manager = MagicMock()
        manager.get_access_token = AsyncMock(return_value="bearer-token")
        return manager

    @pytest.fixture
    def commerce_client(self, raw_product):
        client = MagicMock()
        client.get_product = AsyncMock(return_value=raw_product)
        return client

    @pytest.fixture
    def cache(self, clock):
        return ExpiringCache("product", clock=clock)

    @pytest.fixture
    def product_service(self, token_manager, commerce_client, cache):
        return ProductService(token_manager, commerce_client, cache)

    @pytest.mark.asyncio
    async def test_get_product_fetches_and_shapes(self, product_service, commerce_client, token_manager):
        shaped = await product_service.get_product("P100")

        assert set(shaped) == {"RED", "BLU"}
        token_manager.get_access_token.assert_awaited_once()
        commerce_client.get_product.assert_awaited_once_with("P100", "bearer-token")

    @pytest.mark.asyncio
    async def test_get_product_cache_hit_within_ttl(self, product_service, commerce_client, clock):
        first = await product_service.get_product("P100")
        clock.advance(DEFAULT_PRODUCT_TTL - 1)
        second = await product_service.get_product("P100")

        assert first == second
        assert commerce_client.get_product.await_count == 1

    @pytest.mark.asyncio
    async def test_get_product_refreshes_after_ttl(self, product_service, commerce_client, cache, clock):
        await product_service.get_product("P100")
        clock.advance(DEFAULT_PRODUCT_TTL)
        commerce_client.get_product.return_value = product_with_color("GRN")

        shaped = await product_service.get_product("P100")

        assert list(shaped) == ["GRN"]
        assert commerce_client.get_product.await_count == 2
        assert cache.entry("P100").expires_at == clock() + DEFAULT_PRODUCT_TTL

    @pytest.mark.asyncio
    async def test_ttl_is_configurable(self, token_manager, commerce_client, cache, clock):
        service = ProductService(token_manager, commerce_client, cache, ttl_seconds=300)

        await service.get_product("P100")

        assert cache.entry("P100").expires_at == clock() + 300

    @pytest.mark.asyncio
    async def test_auth_error_propagates_without_upstream_call(self, product_service, token_manager, commerce_client):
        token_manager.get_access_token.side_effect = AuthError()

        with pytest.raises(AuthError):
            await product_service.get_product("P100")

        commerce_client.get_product.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_malformed_product_is_upstream_fetch_error(self, product_service, commerce_client, cache):
        commerce_client.get_product.return_value = {"imageGroups": [{"images": []}]}

        with pytest.raises(UpstreamFetchError) as exc_info:
            await product_service.get_product("P100")

        assert isinstance(exc_info.value, MalformedUpstreamData)
        assert "P100" not in cache

    @pytest.mark.asyncio
    async def test_failed_refresh_leaves_stale_entry(self, product_service, commerce_client, cache, clock):
        await product_service.get_product("P100")
        previous = cache.entry("P100")
        clock.advance(DEFAULT_PRODUCT_TTL + 1)
        commerce_client.get_product.side_effect = UpstreamFetchError()

        with pytest.raises(UpstreamFetchError):
            await product_service.get_product("P100")

        assert cache.entry("P100") == previous

    @pytest.mark.asyncio
    async def test_get_products_partial_failure(self, product_service, commerce_client):
        async def fetch(product_id, token):
            if product_id == "P2":
                raise UpstreamFetchError(details={"product_id": product_id})
            return product_with_color("RED" if product_id == "P1" else "BLU")

        commerce_client.get_product.side_effect = fetch

        result = await product_service.get_products(["P1", "P2", "P3"])

        assert set(result) == {"P1", "P2", "P3"}
        assert list(result["P1"]) == ["RED"]
        assert result["P2"] == FETCH_ERROR_MARKER
        assert list(result["P3"]) == ["BLU"]

    @pytest.mark.asyncio
    async def test_get_products_unexpected_item_error_is_isolated(self, product_service, commerce_client):
        async def fetch(product_id, token):
            if product_id == "P1":
                raise RuntimeError("boom")
            return product_with_color("RED")

        commerce_client.get_product.side_effect = fetch

        result = await product_service.get_products(["P1", "P2"])

        assert result == {"P1": FETCH_ERROR_MARKER, "P2": product_with_color_shaped("RED")}

    @pytest.mark.asyncio
    async def test_get_products_waits_for_slow_fetches(self, product_service, commerce_client):
        settled = []

        async def fetch(product_id, token):
            await asyncio.sleep({"slow": 0.2, "fast": 0.0, "failing": 0.05}[product_id])
            settled.append(product_id)
            if product_id == "failing":
                raise UpstreamFetchError()
            return product_with_color("RED")

        commerce_client.get_product.side_effect = fetch

        result = await asyncio.wait_for(product_service.get_products(["slow", "fast", "failing"]), timeout=5)

        assert sorted(settled) == ["failing", "fast", "slow"]
        assert list(result["slow"]) == ["RED"]
        assert result["failing"] == FETCH_ERROR_MARKER

    @pytest.mark.asyncio
    async def test_get_products_runs_fetches_concurrently(self, product_service, commerce_client):
        in_flight = 0
        peak = 0

        async def fetch(product_id, token):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return product_with_color("RED")

        commerce_client.get_product.side_effect = fetch

        await product_service.get_products(["P1", "P2", "P3", "P4"])

        assert peak == 4

    @pytest.mark.asyncio
    async def test_get_products_empty_and_non_string_ids(self, product_service):
        assert await product_service.get_products([]) == {}

        result = await product_service.get_products([12345])

        assert list(result) == ["12345"]

    @pytest.mark.asyncio
    async def test_concurrent_misses_are_not_coalesced(self, product_service, commerce_client):
        async def fetch(product_id, token):
            await asyncio.sleep(0.01)
            return product_with_color("RED")

        commerce_client.get_product.side_effect = fetch

        await asyncio.gather(product_service.get_product("P1"), product_service.get_product("P1"))

        assert commerce_client.get_product.await_count == 2


def product_with_color_shaped(color):
    return {color: [{
        "url": f"https://www.seedheritage.com/{color.lower()}.jpg",
        "alt": f"{color} alt 0",
        "title": f"{color} title 0",
    }]}
