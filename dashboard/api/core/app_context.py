"""
Application context.

All process-wide state (HTTP session, caches, throttles, the CoinMarketCap
quota and the database manager) is built once here and handed to route
handlers through ``get_context``. Tests build their own context with fakes.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fastapi import Request

from dashboard.core.http_client import HttpClient
from dashboard.database.core.database_manager import DatabaseManager
from dashboard.database.repositories import AccountRepository, KnowledgeRepository, TradeRepository
from dashboard.services.analysis import AnalysisService, ServiceClient, TranscriptService
from dashboard.services.knowledge import KnowledgeService
from dashboard.services.market_data import (
    CategoryService, CoinDetailService, CoinGeckoClient, CoinHistoryService, CoinMarketCapClient,
    FallbackLookupService, MarketDataConfig, MarketDataResolver, PrimaryLookupService, QuotaCounter,
    market_data_config,
)
from dashboard.services.market_data.market_models import Clock
from dashboard.services.revalidation import PageRevalidator
from dashboard.services.trading import BalanceService, BinanceAccountService, PnLService, TradingSettingsService

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    clock: Clock
    http: HttpClient
    quota: QuotaCounter
    coingecko: CoinGeckoClient
    coinmarketcap: CoinMarketCapClient
    resolver: MarketDataResolver
    primary_lookup: PrimaryLookupService
    fallback_lookup: FallbackLookupService
    coin_details: CoinDetailService
    coin_history: CoinHistoryService
    categories: CategoryService
    db_manager: DatabaseManager
    trades: TradeRepository
    knowledge: KnowledgeService
    pnl: PnLService
    balances: BalanceService
    binance: BinanceAccountService
    trading_settings: TradingSettingsService
    analysis: AnalysisService
    transcripts: TranscriptService
    revalidator: PageRevalidator
    started_at: float = field(default=0.0)

    def cache_stats(self) -> List[Dict[str, Any]]:
        caches = [
            self.resolver.cache, self.primary_lookup.cache, self.fallback_lookup.cache,
            self.coingecko.page_cache, self.coingecko.coins_list_cache,
            self.coin_details.cache, self.coin_history.cache,
            self.categories.list_cache, self.categories.detail_cache,
            self.knowledge.cache,
        ]
        return [cache.get_cache_stats() for cache in caches]

    async def close(self) -> None:
        await self.http.close_session()
        self.db_manager.connection_manager.close()


def _register_revalidation(context: AppContext) -> None:
    revalidator = context.revalidator
    for name, cache in (
        ("resolver", context.resolver.cache),
        ("coingecko-lookup", context.primary_lookup.cache),
        ("coinmarketcap-lookup", context.fallback_lookup.cache),
    ):
        revalidator.register("/", name, cache.clear)

    revalidator.register("/categories", "categories", context.categories.list_cache.clear)
    revalidator.register("/categories", "category-detail", context.categories.detail_cache.clear)
    revalidator.register("/coin", "coin-detail", context.coin_details.cache.clear)
    revalidator.register("/coin", "coin-history", context.coin_history.cache.clear)


def build_app_context(clock: Clock = time.time,
                      config: Optional[MarketDataConfig] = None,
                      http: Optional[HttpClient] = None,
                      db_manager: Optional[DatabaseManager] = None,
                      coingecko: Optional[CoinGeckoClient] = None,
                      coinmarketcap: Optional[CoinMarketCapClient] = None,
                      binance: Optional[BinanceAccountService] = None,
                      analysis: Optional[AnalysisService] = None,
                      transcripts: Optional[TranscriptService] = None,
                      revalidator: Optional[PageRevalidator] = None) -> AppContext:
    """Wire every service around one clock, one HTTP session and one quota."""
    config = config or market_data_config
    http = http or HttpClient()
    db_manager = db_manager or DatabaseManager()

    quota = QuotaCounter(config.cmc_monthly_limit, config.cmc_quota_window_seconds, clock)
    coingecko = coingecko or CoinGeckoClient(http, config, clock)
    coinmarketcap = coinmarketcap or CoinMarketCapClient(http, config)
    revalidator = revalidator or PageRevalidator(clock=clock)

    coin_details = CoinDetailService(coingecko, coinmarketcap, quota, config, clock)
    accounts = AccountRepository(db_manager)
    service_client = ServiceClient()

    context = AppContext(
        clock=clock,
        http=http,
        quota=quota,
        coingecko=coingecko,
        coinmarketcap=coinmarketcap,
        resolver=MarketDataResolver(coingecko, coinmarketcap, quota, config, clock),
        primary_lookup=PrimaryLookupService(coingecko, config, clock),
        fallback_lookup=FallbackLookupService(coinmarketcap, quota, config, clock),
        coin_details=coin_details,
        coin_history=CoinHistoryService(coin_details, coingecko, config, clock),
        categories=CategoryService(coingecko, config, clock),
        db_manager=db_manager,
        trades=TradeRepository(db_manager),
        knowledge=KnowledgeService(KnowledgeRepository(db_manager), revalidator, clock=clock),
        pnl=PnLService(TradeRepository(db_manager), clock=clock),
        balances=BalanceService(accounts),
        binance=binance or BinanceAccountService(clock=clock),
        trading_settings=TradingSettingsService(accounts),
        analysis=analysis or AnalysisService(service_client),
        transcripts=transcripts or TranscriptService(service_client),
        revalidator=revalidator,
        started_at=clock(),
    )
    _register_revalidation(context)
    logger.info("Application context initialised")
    return context


def get_context(request: Request) -> AppContext:
    """FastAPI dependency returning the process-wide context."""
    return request.app.state.context
