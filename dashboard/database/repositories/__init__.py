"""
Database Repositories
"""

from dashboard.database.repositories.trade_repository import TradeRepository
from dashboard.database.repositories.account_repository import AccountRepository
from dashboard.database.repositories.knowledge_repository import KnowledgeRepository

__all__ = [
    "TradeRepository",
    "AccountRepository",
    "KnowledgeRepository"
]
