"""
Tests for category listing and alias matching.
"""

import pytest
from unittest.mock import AsyncMock, Mock

from dashboard.core.errors import NotFoundError, RateLimitedError, RequestValidationFailed, UpstreamError
from dashboard.services.market_data import CategoryService, MarketDataConfig, find_category_match
from tests.conftest import FakeClock, START_TIME

CATEGORIES = [
    {"id": "layer-1", "name": "Layer 1 (L1)", "market_cap": 2e12, "volume_24h": 5e10, "top_3_coins": ["a"]},
    {"id": "meme-token", "name": "Meme", "market_cap": 5e10, "volume_24h": 1e9},
    {"id": "decentralized-finance-defi", "name": "Decentralized Finance (DeFi)", "market_cap": 1e11},
    {"id": "gaming", "name": "Gaming (GameFi)", "market_cap": 2e10},
]


class TestFindCategoryMatch:
    """Test find_category_match aliases and fallbacks."""

    def test_meme_alias(self):
        assert find_category_match(CATEGORIES, "memecoin")["id"] == "meme-token"

    def test_exact_id(self):
        assert find_category_match(CATEGORIES, "layer-1")["id"] == "layer-1"

    def test_defi_alias(self):
        assert find_category_match(CATEGORIES, "DeFi")["id"] == "decentralized-finance-defi"

    def test_gaming_keyword(self):
        assert find_category_match(CATEGORIES, "play to earn")["id"] == "gaming"

    def test_unknown(self):
        assert find_category_match(CATEGORIES, "quantum") is None


class TestCategoryService:
    """Test CategoryService caching."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def coingecko(self):
        client = Mock()
        client.get_categories = AsyncMock(return_value=CATEGORIES)
        return client

    @pytest.fixture
    def service(self, coingecko, clock):
        return CategoryService(coingecko, MarketDataConfig(cmc_api_key="k"), clock)

    @pytest.mark.asyncio
    async def test_list_is_fresh_then_cached(self, service, coingecko):
        first = await service.list_categories()
        second = await service.list_categories()

        assert first["isFresh"] is True
        assert first["timestamp"] == int(START_TIME * 1000)
        assert first["data"][1] == {
            "id": "meme-token", "name": "Meme", "market_cap": 5e10, "volume_24h": 1e9, "top_3_coins": [],
        }
        assert second["isFresh"] is False
        assert coingecko.get_categories.await_count == 1

    @pytest.mark.asyncio
    async def test_refresh_failure_serves_cached_list(self, service, coingecko, clock):
        await service.list_categories()
        clock.advance(1801)
        coingecko.get_categories.side_effect = UpstreamError("down", status=500)

        result = await service.list_categories()

        assert result["isFresh"] is False
        assert len(result["data"]) == 4

    @pytest.mark.asyncio
    async def test_upstream_429_without_cache(self, service, coingecko):
        coingecko.get_categories.side_effect = UpstreamError("limited", status=429)

        with pytest.raises(RateLimitedError):
            await service.list_categories()

    @pytest.mark.asyncio
    async def test_get_category_by_alias(self, service):
        result = await service.get_category("meme")

        assert result["data"]["id"] == "meme-token"
        assert result["timestamp"] == int(START_TIME * 1000)

    @pytest.mark.asyncio
    async def test_get_category_not_found(self, service):
        with pytest.raises(NotFoundError):
            await service.get_category("quantum")

    @pytest.mark.asyncio
    async def test_get_category_requires_id(self, service):
        with pytest.raises(RequestValidationFailed):
            await service.get_category("  ")
