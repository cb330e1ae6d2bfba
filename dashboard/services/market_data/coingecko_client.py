"""
CoinGecko adapter (primary market-data source).

The market listing is the top ``listing_pages * page_size`` coins by market
cap. Page 1 is fetched on every live refresh; later pages are kept in their
own page cache and re-fetched concurrently only when stale, with a failed
page falling back to its last good copy.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pycoingecko import CoinGeckoAPI

from dashboard.core.errors import UpstreamError
from dashboard.core.http_client import HttpClient, RetryPolicy
from .coin_matching import match_symbols
from .market_cache import TimedCache
from .market_config import MarketDataConfig
from .market_models import Clock, CoinRecord, SOURCE_PRIMARY

logger = logging.getLogger(__name__)


def record_from_market_row(row: Mapping[str, Any]) -> CoinRecord:
    """Build a primary CoinRecord from a /coins/markets row."""
    return CoinRecord(
        id=row.get("id", ""),
        symbol=row.get("symbol", ""),
        name=row.get("name", ""),
        source=SOURCE_PRIMARY,
        price=row.get("current_price") or 0,
        market_cap=row.get("market_cap") or 0,
        volume_24h=row.get("total_volume") or 0,
        percent_change_1h=row.get("price_change_percentage_1h_in_currency"),
        percent_change_24h=row.get("price_change_percentage_24h") or 0,
        percent_change_7d=row.get("price_change_percentage_7d_in_currency"),
        circulating_supply=row.get("circulating_supply") or 0,
        total_supply=row.get("total_supply"),
        max_supply=row.get("max_supply"),
        image=row.get("image") or "",
        coingecko_id=row.get("id"),
        rank=row.get("market_cap_rank"),
    )


class CoinGeckoClient:
    """Handles CoinGecko API interactions for listings, coin detail, OHLC and categories."""

    def __init__(self, http: HttpClient, config: MarketDataConfig, clock: Clock,
                 cg: Optional[CoinGeckoAPI] = None):
        self.http = http
        self.config = config
        self.base_url = config.coingecko_url.rstrip("/")
        self.cg = cg or CoinGeckoAPI()
        self.page_cache: TimedCache[int, List[Dict[str, Any]]] = TimedCache(
            config.page_cache_seconds, clock, "coingecko-pages")
        self.coins_list_cache: TimedCache[str, List[Dict[str, Any]]] = TimedCache(
            config.coin_list_cache_seconds, clock, "coingecko-coins-list")

    async def fetch_market_page(self, page: int) -> List[Dict[str, Any]]:
        params = {
            "vs_currency": "usd",
            "order": "market_cap_desc",
            "per_page": str(self.config.page_size),
            "page": str(page),
            "sparkline": "false",
            "price_change_percentage": "24h",
        }
        data = await self.http.get_json(
            f"{self.base_url}/coins/markets",
            params=params,
            headers={"Cache-Control": "no-cache"},
            timeout=self.config.listing_timeout,
        )
        if not isinstance(data, list):
            raise UpstreamError(f"Invalid response from CoinGecko for page {page}")
        return data

    async def _refresh_page(self, page: int) -> List[Dict[str, Any]]:
        try:
            rows = await self.fetch_market_page(page)
        except UpstreamError as e:
            cached = self.page_cache.get_any(page)
            logger.warning(f"CoinGecko page {page} failed ({e.message}); "
                           f"{'using cached copy' if cached else 'skipping page'}")
            return cached.data if cached else []
        self.page_cache.set(page, rows)
        return rows

    async def fetch_raw_listing(self) -> List[Dict[str, Any]]:
        """Top-N market rows in market-cap order.

        Raises:
            UpstreamError: when page 1 cannot be fetched.
        """
        later_pages = range(2, self.config.listing_pages + 1)
        pending = {}
        for page in later_pages:
            if self.page_cache.get_fresh(page) is None:
                pending[page] = asyncio.ensure_future(self._refresh_page(page))

        try:
            first_page = await self.fetch_market_page(1)
        except UpstreamError:
            for task in pending.values():
                task.cancel()
            raise

        rows = list(first_page)
        for page in later_pages:
            if page in pending:
                rows.extend(await pending[page])
            else:
                rows.extend(self.page_cache.get_any(page).data)

        logger.info(f"Fetched CoinGecko listing: {len(rows)} coins ({len(pending)} pages refreshed)")
        return rows

    async def fetch_listing(self) -> List[CoinRecord]:
        return [record_from_market_row(row) for row in await self.fetch_raw_listing()]

    async def lookup(self, keys: Iterable[str]) -> Dict[str, CoinRecord]:
        """Match normalized symbols/names against the full listing."""
        rows = await self.fetch_raw_listing()
        return {key: record_from_market_row(row) for key, row in match_symbols(keys, rows).items()}

    async def get_coins_list(self) -> List[Dict[str, Any]]:
        """All CoinGecko coins as {id, symbol, name}, cached for an hour."""
        cached = self.coins_list_cache.get_fresh("all")
        if cached:
            return cached.data

        loop = asyncio.get_running_loop()
        try:
            coins = await loop.run_in_executor(None, self.cg.get_coins_list)
        except Exception as e:
            stale = self.coins_list_cache.get_any("all")
            if stale:
                logger.warning(f"CoinGecko coins list refresh failed, using cached list: {e}")
                return stale.data
            raise UpstreamError(f"Failed to fetch CoinGecko coins list: {e}") from e

        self.coins_list_cache.set("all", coins)
        logger.info(f"Loaded {len(coins)} coins from CoinGecko coins list")
        return coins

    async def get_coin_detail(self, coin_id: str) -> Dict[str, Any]:
        params = {
            "localization": "false",
            "tickers": "false",
            "market_data": "true",
            "community_data": "false",
            "developer_data": "false",
        }
        return await self.http.get_json(
            f"{self.base_url}/coins/{coin_id}",
            params=params,
            timeout=self.config.detail_timeout,
            policy=RetryPolicy.linear(self.config.detail_max_attempts, self.config.detail_backoff_step),
        )

    async def get_ohlc(self, coin_id: str, days: str) -> List[List[float]]:
        data = await self.http.get_json(
            f"{self.base_url}/coins/{coin_id}/ohlc",
            params={"vs_currency": "usd", "days": str(days)},
            timeout=self.config.detail_timeout,
        )
        if not isinstance(data, list):
            raise UpstreamError(f"Invalid OHLC response for {coin_id}")
        return data

    async def get_categories(self) -> List[Dict[str, Any]]:
        data = await self.http.get_json(
            f"{self.base_url}/coins/categories",
            params={"order": "market_cap_desc"},
            timeout=self.config.listing_timeout,
        )
        if not isinstance(data, list):
            raise UpstreamError("No category data received from CoinGecko")
        return data
