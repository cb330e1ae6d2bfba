"""
CoinMarketCap adapter (fallback market-data source).

Every call here is metered by the monthly quota, so callers decide when to
use it; the adapter itself performs exactly one upstream request per method.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping

from dashboard.core.errors import ConfigurationError, UpstreamError
from dashboard.core.http_client import HttpClient
from .coin_matching import match_symbols
from .market_config import MarketDataConfig
from .market_models import CoinRecord, SOURCE_FALLBACK

logger = logging.getLogger(__name__)

CMC_IMAGE_URL = "https://s2.coinmarketcap.com/static/img/coins/{size}x{size}/{id}.png"


def cmc_image(cmc_id: Any, size: int = 64) -> str:
    return CMC_IMAGE_URL.format(size=size, id=cmc_id)


def record_from_listing_row(row: Mapping[str, Any]) -> CoinRecord:
    """Build a fallback CoinRecord from a listings/latest row."""
    quote = (row.get("quote") or {}).get("USD") or {}
    return CoinRecord(
        id=row.get("slug") or str(row.get("id", "")),
        symbol=row.get("symbol", ""),
        name=row.get("name", ""),
        source=SOURCE_FALLBACK,
        price=quote.get("price") or 0,
        market_cap=quote.get("market_cap") or 0,
        volume_24h=quote.get("volume_24h") or 0,
        percent_change_1h=quote.get("percent_change_1h"),
        percent_change_24h=quote.get("percent_change_24h"),
        percent_change_7d=quote.get("percent_change_7d"),
        circulating_supply=row.get("circulating_supply"),
        total_supply=row.get("total_supply"),
        max_supply=row.get("max_supply"),
        image=cmc_image(row.get("id")),
        cmc_id=row.get("id"),
        rank=row.get("cmc_rank"),
        market_cap_dominance=quote.get("market_cap_dominance"),
        fully_diluted_market_cap=quote.get("fully_diluted_market_cap"),
    )


class CoinMarketCapClient:
    """Handles CoinMarketCap API interactions."""

    def __init__(self, http: HttpClient, config: MarketDataConfig):
        self.http = http
        self.config = config
        self.base_url = config.coinmarketcap_url.rstrip("/")
        self.api_key = config.cmc_api_key

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise ConfigurationError("CMC API key not configured")
        return {"X-CMC_PRO_API_KEY": self.api_key, "Accept": "application/json"}

    async def fetch_raw_listing(self) -> Dict[str, Any]:
        """Raw listings/latest payload (``data`` rows plus ``status``)."""
        payload = await self.http.get_json(
            f"{self.base_url}/cryptocurrency/listings/latest",
            params={
                "limit": str(self.config.cmc_listing_limit),
                "convert": "USD",
                "sort": "market_cap",
                "sort_dir": "desc",
            },
            headers=self._headers(),
            timeout=self.config.listing_timeout,
        )
        if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
            raise UpstreamError("Invalid response from CoinMarketCap")
        return payload

    async def fetch_listing(self) -> List[Dict[str, Any]]:
        payload = await self.fetch_raw_listing()
        logger.info(f"Fetched CoinMarketCap listing: {len(payload['data'])} coins")
        return payload["data"]

    async def lookup(self, keys: Iterable[str]) -> Dict[str, CoinRecord]:
        """One batched listing call, matched against the requested subset only."""
        rows = await self.fetch_listing()
        return {key: record_from_listing_row(row) for key, row in match_symbols(keys, rows).items()}

    async def get_quote(self, cmc_id: str) -> Dict[str, Any]:
        payload = await self.http.get_json(
            f"{self.base_url}/cryptocurrency/quotes/latest",
            params={"id": str(cmc_id)},
            headers=self._headers(),
            timeout=self.config.detail_timeout,
        )
        coin = ((payload or {}).get("data") or {}).get(str(cmc_id))
        if not coin:
            raise UpstreamError(f"Coin {cmc_id} not found in CoinMarketCap response")
        return coin

    async def test_key(self) -> Dict[str, Any]:
        """Diagnostic call used by GET /api/coinmarketcap."""
        payload = await self.fetch_raw_listing()
        rows = payload["data"]
        status = payload.get("status") or {}

        def summary(row: Mapping[str, Any]) -> Dict[str, Any]:
            return {
                "name": row.get("name"),
                "symbol": row.get("symbol"),
                "rank": row.get("cmc_rank"),
                "price": ((row.get("quote") or {}).get("USD") or {}).get("price"),
            }

        return {
            "success": True,
            "total_coins_fetched": len(rows),
            "first_coin": summary(rows[0]) if rows else None,
            "last_coin": summary(rows[-1]) if rows else None,
            "plan_details": {
                "credit_count": status.get("credit_count"),
                "elapsed": status.get("elapsed"),
                "timestamp": status.get("timestamp"),
            },
        }
