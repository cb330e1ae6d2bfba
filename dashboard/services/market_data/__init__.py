from .market_models import (
    CoinRecord, CacheEntry, QuotaCounter, RateWindow, ResolveResult,
    SOURCE_PRIMARY, SOURCE_FALLBACK,
)
from .market_config import MarketDataConfig, market_data_config
from .market_cache import TimedCache
from .coin_matching import match_symbols, find_coin_match, normalize_symbols
from .coingecko_client import CoinGeckoClient
from .coinmarketcap_client import CoinMarketCapClient
from .symbol_lookup import (
    SymbolLookup, MarketDataResolver, PrimaryLookupService, FallbackLookupService,
)
from .coin_service import CoinDetailService, CoinHistoryService, HistoryResult
from .category_service import CategoryService, find_category_match

__all__ = [
    'CoinRecord',
    'CacheEntry',
    'QuotaCounter',
    'RateWindow',
    'ResolveResult',
    'SOURCE_PRIMARY',
    'SOURCE_FALLBACK',
    'MarketDataConfig',
    'market_data_config',
    'TimedCache',
    'match_symbols',
    'find_coin_match',
    'normalize_symbols',
    'CoinGeckoClient',
    'CoinMarketCapClient',
    'SymbolLookup',
    'MarketDataResolver',
    'PrimaryLookupService',
    'FallbackLookupService',
    'CoinDetailService',
    'CoinHistoryService',
    'HistoryResult',
    'CategoryService',
    'find_category_match',
]
