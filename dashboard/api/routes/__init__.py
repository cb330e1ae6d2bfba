"""
API Routes Module

This module contains all API route handlers.
"""

from dashboard.api.routes.market_routes import router as market_router
from dashboard.api.routes.coin_routes import router as coin_router
from dashboard.api.routes.category_routes import router as category_router
from dashboard.api.routes.knowledge_routes import router as knowledge_router
from dashboard.api.routes.trade_routes import router as trade_router
from dashboard.api.routes.account_routes import router as account_router
from dashboard.api.routes.analysis_routes import router as analysis_router
from dashboard.api.routes.cache_routes import router as cache_router
from dashboard.api.routes.health_routes import router as health_router

__all__ = [
    "market_router",
    "coin_router",
    "category_router",
    "knowledge_router",
    "trade_router",
    "account_router",
    "analysis_router",
    "cache_router",
    "health_router"
]
