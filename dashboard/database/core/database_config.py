"""
Database Configuration Module

Supabase credentials, the dashboard's table names and query-logging knobs.
"""

from dataclasses import dataclass
from typing import Optional
import os

from config import settings


@dataclass
class DatabaseConfig:
    """Database configuration settings."""

    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None

    knowledge_table: str = "knowledge"
    trades_table: str = "trades"
    balances_table: str = "balances"
    active_futures_table: str = "active_futures"
    transactions_table: str = "transaction_history"
    alerts_table: str = "alerts"
    exchange_config_table: str = "trader_exchange_config"

    # Page size used when a caller asks for an offset without a limit
    default_page_size: int = 1000

    enable_query_logging: bool = False
    slow_query_threshold: float = 1.0

    def __post_init__(self):
        """Fill credentials from settings and apply environment overrides."""
        if self.supabase_url is None:
            self.supabase_url = settings.SUPABASE_URL or ""
        if self.supabase_key is None:
            self.supabase_key = settings.SUPABASE_KEY or ""
        self.knowledge_table = settings.KNOWLEDGE_TABLE or self.knowledge_table
        self.default_page_size = int(os.getenv("DB_DEFAULT_PAGE_SIZE", str(self.default_page_size)))
        self.enable_query_logging = os.getenv("DB_ENABLE_QUERY_LOGGING", str(self.enable_query_logging)).lower() == "true"
        self.slow_query_threshold = float(os.getenv("DB_SLOW_QUERY_THRESHOLD", str(self.slow_query_threshold)))


# Global database configuration instance
database_config = DatabaseConfig()
