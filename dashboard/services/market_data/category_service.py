import logging
import re
from typing import Any, Dict, List, Mapping, Optional

from dashboard.core.errors import NotFoundError, RateLimitedError, RequestValidationFailed, UpstreamError, UpstreamUnavailableError
from .coingecko_client import CoinGeckoClient
from .market_cache import TimedCache
from .market_config import MarketDataConfig
from .market_models import Clock

logger = logging.getLogger(__name__)

# Canonical category id -> aliases users type in
SPECIAL_CATEGORY_MAPPINGS: Dict[str, List[str]] = {
    "layer-1": ["layer 1", "l1", "layer1", "layer one"],
    "meme-token": ["meme", "memes", "meme coin", "memecoin"],
    "gaming-entertainment-social": [
        "gaming", "entertainment", "games", "play to earn", "p2e", "game", "metaverse",
    ],
    "artificial-intelligence-ai": ["ai", "artificial intelligence", "artificial-intelligence"],
    "decentralized-finance-defi": ["defi", "decentralized finance"],
}

_SEPARATORS = re.compile(r"[-_]")


def _contains_any(category: Mapping[str, Any], words: List[str]) -> bool:
    name = str(category.get("name", "")).lower()
    cat_id = str(category.get("id", "")).lower()
    return any(word in name or word in cat_id for word in words)


def find_category_match(categories: List[Mapping[str, Any]], search_term: str) -> Optional[Mapping[str, Any]]:
    """Find a category by id or name, accepting common aliases."""
    search = search_term.lower().strip()
    special = [
        (key, aliases) for key, aliases in SPECIAL_CATEGORY_MAPPINGS.items()
        if search == key or search in aliases
    ]

    for key, aliases in special:
        targets = {key, *aliases}
        for cat in categories:
            if str(cat.get("name", "")).lower() in targets or str(cat.get("id", "")).lower() in targets:
                return cat

    for field in ("id", "name"):
        for cat in categories:
            if str(cat.get(field, "")).lower() == search:
                return cat

    flexible = _SEPARATORS.sub(" ", search)
    for cat in categories:
        if (str(cat.get("name", "")).lower() == flexible
                or _SEPARATORS.sub(" ", str(cat.get("id", "")).lower()) == flexible):
            return cat

    for cat in categories:
        name = str(cat.get("name", "")).lower()
        cat_id = str(cat.get("id", "")).lower()
        if (name and (search in name or name in search)) or (cat_id and (search in cat_id or cat_id in search)):
            return cat

    for key, aliases in special:
        for cat in categories:
            if _contains_any(cat, aliases):
                return cat

    if "gaming" in search or "game" in search:
        keywords = ["gaming", "game"]
    elif "defi" in search or "finance" in search:
        keywords = ["defi", "finance"]
    else:
        return None
    return next((cat for cat in categories if _contains_any(cat, keywords)), None)


def _shape_category(row: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "id": row.get("id"),
        "name": row.get("name"),
        "market_cap": row.get("market_cap") or 0,
        "volume_24h": row.get("volume_24h") or 0,
        "top_3_coins": row.get("top_3_coins") or [],
    }


class CategoryService:
    """Category listing (30 min cache) and per-category lookup (5 min cache)."""

    LIST_KEY = "all"

    def __init__(self, coingecko: CoinGeckoClient, config: MarketDataConfig, clock: Clock):
        self.coingecko = coingecko
        self.clock = clock
        self.list_cache: TimedCache[str, List[Dict[str, Any]]] = TimedCache(
            config.category_list_cache_seconds, clock, "categories")
        self.detail_cache: TimedCache[str, Dict[str, Any]] = TimedCache(
            config.category_detail_cache_seconds, clock, "category-detail")

    async def list_categories(self) -> Dict[str, Any]:
        cached = self.list_cache.get_fresh(self.LIST_KEY)
        if cached:
            return {"data": cached.data, "timestamp": int(cached.timestamp * 1000), "isFresh": False}

        try:
            rows = await self.coingecko.get_categories()
        except UpstreamError as e:
            stale = self.list_cache.get_any(self.LIST_KEY)
            if stale:
                logger.warning(f"Category refresh failed, serving cached list: {e.message}")
                return {"data": stale.data, "timestamp": int(stale.timestamp * 1000), "isFresh": False}
            if e.is_rate_limited:
                raise RateLimitedError("Rate limit exceeded, please try again later") from e
            raise UpstreamUnavailableError("Failed to fetch category data", details=e.message) from e

        entry = self.list_cache.set(self.LIST_KEY, [_shape_category(row) for row in rows])
        logger.info(f"Loaded {len(entry.data)} categories")
        return {"data": entry.data, "timestamp": int(entry.timestamp * 1000), "isFresh": True}

    async def get_category(self, category_id: str) -> Dict[str, Any]:
        if not category_id or not category_id.strip():
            raise RequestValidationFailed("Missing category ID")

        cached = self.detail_cache.get_fresh(category_id)
        if cached:
            return cached.data

        listing = await self.list_categories()
        categories = listing["data"]
        if not categories:
            raise UpstreamUnavailableError("Failed to load categories")

        match = find_category_match(categories, category_id)
        if match is None:
            logger.info(f"Category not found: {category_id}")
            raise NotFoundError("Category not found")

        result = {"data": match, "timestamp": int(self.clock() * 1000)}
        self.detail_cache.set(category_id, result)
        return result

    def clear(self) -> int:
        return self.list_cache.clear() + self.detail_cache.clear()
