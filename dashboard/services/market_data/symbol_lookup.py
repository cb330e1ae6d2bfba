"""
Cached symbol lookups over the market-data providers.

``SymbolLookup`` owns the serving policy shared by every listing-backed route:

1. a fresh cache entry containing at least one requested symbol is served
   as-is (``fromCache``);
2. otherwise, inside the minimum interval since the last live call, the last
   entry is served stale (even when it holds none of the requested symbols),
   or the request is refused with a 429 when nothing is cached for the mode;
3. otherwise a live fetch runs and its result replaces the cache entry;
4. a failed live fetch serves the last entry stale with an error note, or
   fails with an upstream-unavailable error when nothing is cached.

Consecutive failures widen both the throttle interval and the cache window;
one success resets them. Each ``mode`` has its own cache entry and throttle
key. Subclasses only decide how a live fetch is performed.
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Protocol

from dashboard.core.errors import (
    QuotaExhaustedError, RateLimitedError, UpstreamUnavailableError,
)
from .coin_matching import find_coin_match, normalize_symbols
from .coingecko_client import CoinGeckoClient, record_from_market_row
from .market_cache import TimedCache
from .market_config import MarketDataConfig
from .market_models import Clock, CoinRecord, QuotaCounter, RateWindow, ResolveResult

logger = logging.getLogger(__name__)

MODES = ("full", "quick")


class SymbolSource(Protocol):
    async def lookup(self, keys: Iterable[str]) -> Dict[str, CoinRecord]:
        ...


class SymbolLookup:
    """Cache/throttle/stale serving policy around a live fetch."""

    name = "lookup"

    def __init__(self, config: MarketDataConfig, clock: Clock):
        self.config = config
        self.clock = clock
        self.cache: TimedCache[str, Dict[str, CoinRecord]] = TimedCache(
            config.cache_seconds, clock, self.name)
        self.throttle = RateWindow(config.min_request_interval, clock)
        self.consecutive_failures = 0

    def cache_duration(self, mode: str) -> float:
        base = self.config.quick_cache_seconds if mode == "quick" else self.config.cache_seconds
        return min(base * (self.consecutive_failures + 1), self.config.max_cache_seconds)

    def request_interval(self) -> float:
        steps = min(self.consecutive_failures, self.config.max_backoff_steps)
        return self.config.min_request_interval * (self.config.failure_backoff_factor ** steps)

    @staticmethod
    def _requested(records: Dict[str, CoinRecord], keys: List[str]) -> Dict[str, Dict[str, Any]]:
        """Requested symbols present in ``records``, in request order."""
        return {key: records[key].to_dict() for key in keys if key in records}

    def _extra(self, mode: str) -> Dict[str, Any]:
        return {"mode": mode}

    async def _fetch_live(self, keys: List[str], mode: str) -> Dict[str, CoinRecord]:
        raise NotImplementedError

    async def lookup(self, symbols: Iterable[Any], mode: str = "full") -> ResolveResult:
        mode = mode if mode in MODES else "full"
        keys = normalize_symbols(symbols)
        now = self.clock()
        entry = self.cache.get_any(mode)

        if entry is not None and entry.is_fresh(now, self.cache_duration(mode)):
            subset = self._requested(entry.data, keys)
            if subset:
                logger.info(f"[{self.name}] serving {len(subset)}/{len(keys)} symbols from cache")
                return ResolveResult(
                    data=subset,
                    timestamp=entry.timestamp,
                    from_cache=True,
                    extra={**self._extra(mode), "cacheAge": int(entry.age(now) * 1000)},
                )

        wait = self.throttle.seconds_until_allowed(mode, self.request_interval())
        if wait > 0:
            retry_after = math.ceil(wait)
            if entry is not None:
                logger.info(f"[{self.name}] throttled, serving stale cache (retry in {retry_after}s)")
                return ResolveResult(
                    data=self._requested(entry.data, keys),
                    timestamp=entry.timestamp,
                    from_cache=True,
                    stale=True,
                    extra={**self._extra(mode), "retryAfter": retry_after},
                )
            logger.warning(f"[{self.name}] throttled with no cache (retry in {retry_after}s)")
            raise RateLimitedError("Rate limit exceeded", retry_after=retry_after)

        self.throttle.mark(mode)
        try:
            records = await self._fetch_live(keys, mode)
        except Exception as e:
            self.consecutive_failures += 1
            retry_after = math.ceil(self.request_interval())
            logger.error(f"[{self.name}] live fetch failed ({self.consecutive_failures} in a row): {e}")
            if entry is not None:
                return ResolveResult(
                    data=self._requested(entry.data, keys),
                    timestamp=entry.timestamp,
                    from_cache=True,
                    stale=True,
                    error="Using stale cache due to API error",
                    extra={**self._extra(mode), "retryAfter": retry_after},
                )
            raise UpstreamUnavailableError("Failed to fetch market data", details=str(e)) from e

        self.consecutive_failures = 0
        entry = self.cache.set(mode, records)
        logger.info(f"[{self.name}] live fetch resolved {len(records)}/{len(keys)} symbols")
        return ResolveResult(
            data=self._requested(records, keys),
            timestamp=entry.timestamp,
            from_cache=False,
            extra=self._extra(mode),
        )

    def clear(self) -> int:
        self.throttle.clear()
        return self.cache.clear()


class MarketDataResolver(SymbolLookup):
    """Primary-then-fallback resolver.

    The primary source is always asked for the whole batch. Only the symbols it
    could not resolve go to the fallback source, in a single call that costs
    one unit of the shared monthly quota. When the quota is exhausted or the
    fallback fails, the primary matches are returned as partial data.
    """

    name = "resolver"

    def __init__(self, primary: SymbolSource, fallback: Optional[SymbolSource],
                 quota: QuotaCounter, config: MarketDataConfig, clock: Clock):
        super().__init__(config, clock)
        self.primary = primary
        self.fallback = fallback
        self.quota = quota

    def _extra(self, mode: str) -> Dict[str, Any]:
        return {"mode": mode, "callsRemaining": self.quota.remaining()}

    async def resolve(self, symbols: Iterable[Any], mode: str = "full") -> ResolveResult:
        return await self.lookup(symbols, mode)

    async def _fetch_live(self, keys: List[str], mode: str) -> Dict[str, CoinRecord]:
        records = dict(await self.primary.lookup(keys))
        missing = [key for key in keys if key not in records]
        if not missing:
            return records

        if self.fallback is None or not getattr(self.fallback, "is_configured", True):
            logger.info(f"No fallback source configured; {len(missing)} symbols unresolved")
            return records

        if not self.quota.record_call():
            logger.warning(f"Fallback quota exhausted; returning partial data ({len(missing)} unresolved)")
            return records

        logger.info(f"Querying fallback for {len(missing)} symbols ({self.quota.remaining()} calls left)")
        try:
            fallback_records = await self.fallback.lookup(missing)
        except Exception as e:
            logger.error(f"Fallback lookup failed, returning primary matches only: {e}")
            return records

        records.update(fallback_records)
        return records


class PrimaryLookupService(SymbolLookup):
    """Primary-only lookup with forgiving name matching (POST /api/coingecko)."""

    name = "coingecko"

    def __init__(self, coingecko: CoinGeckoClient, config: MarketDataConfig, clock: Clock):
        super().__init__(config, clock)
        self.coingecko = coingecko
        self._last_listing_size = 0

    async def _fetch_live(self, keys: List[str], mode: str) -> Dict[str, CoinRecord]:
        rows = await self.coingecko.fetch_raw_listing()
        records: Dict[str, CoinRecord] = {}
        for key in keys:
            match = find_coin_match(key, rows)
            if match is not None:
                records[key] = record_from_market_row(match)
        self._last_listing_size = len(rows)
        return records

    def _extra(self, mode: str) -> Dict[str, Any]:
        extra: Dict[str, Any] = {"mode": mode}
        if self._last_listing_size:
            extra["totalCoins"] = self._last_listing_size
        return extra


class FallbackLookupService(SymbolLookup):
    """Direct fallback-provider lookup (POST /api/coinmarketcap).

    Callers must declare fallback intent; every live fetch costs one quota unit.
    """

    name = "coinmarketcap"

    def __init__(self, fallback: SymbolSource, quota: QuotaCounter,
                 config: MarketDataConfig, clock: Clock):
        super().__init__(config, clock)
        self.fallback = fallback
        self.quota = quota

    def _extra(self, mode: str) -> Dict[str, Any]:
        return {"callsRemaining": self.quota.remaining()}

    async def lookup_fallback(self, symbols: Iterable[Any]) -> ResolveResult:
        if self.quota.is_exhausted():
            raise QuotaExhaustedError()
        return await self.lookup(symbols, "full")

    async def _fetch_live(self, keys: List[str], mode: str) -> Dict[str, CoinRecord]:
        if not self.quota.record_call():
            raise QuotaExhaustedError()
        return await self.fallback.lookup(keys)
