"""
Database Layer

Thin async layer over the Supabase client used by the dashboard services.
"""

from dashboard.database.core import DatabaseConfig, database_config, DatabaseConnectionManager, DatabaseManager
from dashboard.database.repositories import TradeRepository, AccountRepository, KnowledgeRepository

__all__ = [
    "DatabaseConfig",
    "database_config",
    "DatabaseConnectionManager",
    "DatabaseManager",
    "TradeRepository",
    "AccountRepository",
    "KnowledgeRepository",
]
