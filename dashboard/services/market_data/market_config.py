"""
Market Data Configuration Module

Cache windows, throttling intervals and provider quotas for the market-data
services. All durations are in seconds.
"""

from dataclasses import dataclass
from typing import Optional
import os

from config import settings


@dataclass
class MarketDataConfig:
    """Market data configuration settings."""

    # Provider endpoints
    coingecko_url: str = "https://api.coingecko.com/api/v3"
    coinmarketcap_url: str = "https://pro-api.coinmarketcap.com/v1"
    cmc_api_key: Optional[str] = None

    # Listing lookups
    cache_seconds: float = 45.0
    quick_cache_seconds: float = 60.0
    max_cache_seconds: float = 180.0
    min_request_interval: float = 1.5
    failure_backoff_factor: float = 1.5
    max_backoff_steps: int = 3

    # Primary listing pages
    listing_pages: int = 4
    page_size: int = 250
    page_cache_seconds: float = 180.0

    # Fallback quota
    cmc_monthly_limit: int = 9000
    cmc_quota_window_days: int = 30
    cmc_listing_limit: int = 1000

    # Coin detail, history and categories
    coin_list_cache_seconds: float = 3600.0
    coin_detail_cache_seconds: float = 60.0
    detail_max_attempts: int = 3
    detail_backoff_step: float = 1.0
    history_cache_seconds: float = 300.0
    history_min_interval: float = 60.0
    category_list_cache_seconds: float = 1800.0
    category_detail_cache_seconds: float = 300.0

    # Timeouts
    listing_timeout: float = 30.0
    detail_timeout: float = 10.0

    def __post_init__(self):
        """Override with environment variables if present."""
        self.coingecko_url = os.getenv("COINGECKO_API_URL", settings.COINGECKO_API_URL or self.coingecko_url)
        self.coinmarketcap_url = os.getenv("COINMARKETCAP_API_URL", settings.COINMARKETCAP_API_URL or self.coinmarketcap_url)
        if self.cmc_api_key is None:
            self.cmc_api_key = settings.CMC_API_KEY

        self.cache_seconds = float(os.getenv("MARKET_CACHE_SECONDS", str(self.cache_seconds)))
        self.quick_cache_seconds = float(os.getenv("QUICK_CACHE_SECONDS", str(self.quick_cache_seconds)))
        self.max_cache_seconds = float(os.getenv("MAX_CACHE_SECONDS", str(self.max_cache_seconds)))
        self.min_request_interval = float(os.getenv("MARKET_MIN_INTERVAL_SECONDS", str(self.min_request_interval)))
        self.listing_pages = int(os.getenv("LISTING_PAGES", str(self.listing_pages)))
        self.page_cache_seconds = float(os.getenv("PAGE_CACHE_SECONDS", str(self.page_cache_seconds)))
        self.cmc_monthly_limit = int(os.getenv("CMC_MONTHLY_LIMIT", str(self.cmc_monthly_limit)))
        self.coin_detail_cache_seconds = float(os.getenv("COIN_DETAIL_CACHE_SECONDS", str(self.coin_detail_cache_seconds)))
        self.history_cache_seconds = float(os.getenv("HISTORY_CACHE_SECONDS", str(self.history_cache_seconds)))
        self.history_min_interval = float(os.getenv("HISTORY_MIN_INTERVAL_SECONDS", str(self.history_min_interval)))
        self.category_list_cache_seconds = float(os.getenv("CATEGORY_LIST_CACHE_SECONDS", str(self.category_list_cache_seconds)))
        self.category_detail_cache_seconds = float(os.getenv("CATEGORY_DETAIL_CACHE_SECONDS", str(self.category_detail_cache_seconds)))

    @property
    def cmc_quota_window_seconds(self) -> float:
        return self.cmc_quota_window_days * 24 * 60 * 60

# Global market data configuration instance
market_data_config = MarketDataConfig()
