"""
Single-coin detail and OHLC history.

Detail lookups accept a CoinGecko id, ticker or name, or a ``cmc-<id>``
CoinMarketCap id. History is cached per ``<id>-<days>`` and throttled per coin:
the throttle timestamp is taken when the upstream call is dispatched, so a
second request inside the window never reaches the provider.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from dashboard.core.errors import (
    DashboardError, NotFoundError, RateLimitedError, UpstreamError, UpstreamUnavailableError,
)
from .coingecko_client import CoinGeckoClient
from .coinmarketcap_client import CoinMarketCapClient, cmc_image
from .market_cache import TimedCache
from .market_config import MarketDataConfig
from .market_models import Clock, QuotaCounter, RateWindow

logger = logging.getLogger(__name__)

CMC_PREFIX = "cmc-"


def resolve_coin_id(query: str, coins: List[Mapping[str, Any]]) -> Optional[Mapping[str, Any]]:
    """Find a coins-list entry by symbol, then name, then id (case-insensitive)."""
    needle = query.lower()
    for field in ("symbol", "name", "id"):
        for coin in coins:
            if str(coin.get(field) or "").lower() == needle:
                return coin
    return None


@dataclass
class HistoryResult:
    data: List[Dict[str, float]]
    from_cache: bool = False
    stale: bool = False

    @property
    def cache_status(self) -> str:
        if self.stale:
            return "STALE"
        return "HIT" if self.from_cache else "MISS"


class CoinDetailService:
    """Coin detail with CoinMarketCap-id support and a short response cache."""

    def __init__(self, coingecko: CoinGeckoClient, coinmarketcap: CoinMarketCapClient,
                 quota: QuotaCounter, config: MarketDataConfig, clock: Clock):
        self.coingecko = coingecko
        self.coinmarketcap = coinmarketcap
        self.quota = quota
        self.cache: TimedCache[str, Dict[str, Any]] = TimedCache(
            config.coin_detail_cache_seconds, clock, "coin-detail")

    async def _from_coinmarketcap(self, cmc_id: str) -> Dict[str, Any]:
        coin = await self.coinmarketcap.get_quote(cmc_id)
        symbol = str(coin.get("symbol", "")).lower()
        coins = await self.coingecko.get_coins_list()
        match = next((c for c in coins if str(c.get("symbol", "")).lower() == symbol), None)
        if match is None:
            raise NotFoundError(f"{symbol} not found in CoinGecko coins list")

        quote = (coin.get("quote") or {}).get("USD") or {}
        return {
            "id": match["id"],
            "symbol": symbol,
            "name": coin.get("name"),
            "cmc_id": coin.get("id"),
            "market_data": {
                "current_price": {"usd": quote.get("price")},
                "market_cap": {"usd": quote.get("market_cap")},
                "total_volume": {"usd": quote.get("volume_24h")},
                "price_change_percentage_24h": quote.get("percent_change_24h"),
                "price_change_percentage_7d": quote.get("percent_change_7d"),
                "price_change_percentage_1h": quote.get("percent_change_1h"),
                "circulating_supply": coin.get("circulating_supply"),
                "total_supply": coin.get("total_supply"),
                "max_supply": coin.get("max_supply"),
            },
            "image": {
                "large": cmc_image(coin.get("id"), 64),
                "small": cmc_image(coin.get("id"), 32),
                "thumb": cmc_image(coin.get("id"), 16),
            },
            "data_source": "cmc",
        }

    async def get_coin(self, coin_id: str) -> Dict[str, Any]:
        """Coin detail, raising NotFoundError or UpstreamUnavailableError."""
        cached = self.cache.get_fresh(coin_id)
        if cached:
            return cached.data

        is_cmc = coin_id.startswith(CMC_PREFIX)
        clean_id = coin_id[len(CMC_PREFIX):] if is_cmc else coin_id

        if is_cmc and self.coinmarketcap.is_configured and self.quota.record_call():
            try:
                data = await self._from_coinmarketcap(clean_id)
                self.cache.set(coin_id, data)
                return data
            except DashboardError as e:
                logger.warning(f"CoinMarketCap lookup for {coin_id} failed, trying CoinGecko: {e.message}")

        try:
            coins = await self.coingecko.get_coins_list()
        except UpstreamError as e:
            raise UpstreamUnavailableError("Failed to fetch coin data", details=e.message) from e

        match = resolve_coin_id(clean_id, coins)
        if match is None:
            raise NotFoundError("Coin not found")

        try:
            detail = await self.coingecko.get_coin_detail(match["id"])
        except UpstreamError as e:
            logger.error(f"Failed to fetch coin detail for {match['id']}: {e.message}")
            raise UpstreamUnavailableError("Failed to fetch coin data", details=e.message) from e

        data = {**detail, "data_source": "coingecko"}
        self.cache.set(coin_id, data)
        return data


class CoinHistoryService:
    """OHLC history with a per-coin dispatch window."""

    def __init__(self, detail_service: CoinDetailService, coingecko: CoinGeckoClient,
                 config: MarketDataConfig, clock: Clock):
        self.detail_service = detail_service
        self.coingecko = coingecko
        self.cache: TimedCache[str, List[Dict[str, float]]] = TimedCache(
            config.history_cache_seconds, clock, "coin-history")
        self.rate_window = RateWindow(config.history_min_interval, clock)

    async def get_history(self, coin_id: str, days: str = "1") -> HistoryResult:
        cache_key = f"{coin_id}-{days}"
        cached = self.cache.get_fresh(cache_key)
        if cached:
            return HistoryResult(cached.data, from_cache=True)

        wait = self.rate_window.seconds_until_allowed(coin_id)
        if wait > 0:
            stale = self.cache.get_any(cache_key)
            if stale:
                logger.info(f"History rate limit hit for {coin_id}, serving stale data")
                return HistoryResult(stale.data, from_cache=True, stale=True)
            raise RateLimitedError("Rate limit exceeded. Please try again later.",
                                   retry_after=math.ceil(wait))

        self.rate_window.mark(coin_id)
        try:
            coin = await self.detail_service.get_coin(coin_id)
            rows = await self.coingecko.get_ohlc(coin["id"], days)
        except DashboardError as e:
            stale = self.cache.get_any(cache_key)
            if stale:
                logger.warning(f"History refresh for {coin_id} failed, serving stale data: {e.message}")
                return HistoryResult(stale.data, from_cache=True, stale=True)
            logger.error(f"Error fetching coin history for {coin_id}: {e.message}")
            raise UpstreamUnavailableError("Failed to fetch coin history", details=e.message) from e

        formatted = [
            {"timestamp": row[0], "open": row[1], "high": row[2], "low": row[3], "close": row[4]}
            for row in rows
            if len(row) >= 5
        ]
        self.cache.set(cache_key, formatted)
        logger.info(f"Cached {len(formatted)} OHLC rows for {cache_key}")
        return HistoryResult(formatted)
