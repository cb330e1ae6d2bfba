"""
Trade Repository

This module provides read access to trades, alerts, active futures and the
exchange transaction history.
"""

import logging
from typing import Optional, Dict, Any, List

from dashboard.database.core.database_manager import DatabaseManager

logger = logging.getLogger(__name__)

PNL_COLUMNS = ["pnl_usd", "net_pnl", "timestamp", "trader", "coin_symbol", "status", "exchange"]
TRANSACTION_SEARCH_COLUMNS = ("type", "asset", "symbol")


class TradeRepository:
    """Repository for trade-related database operations."""

    def __init__(self, db_manager: DatabaseManager):
        """Initialize the trade repository."""
        self.db_manager = db_manager
        self.config = db_manager.config

    async def get_recent_trades(self, limit: int = 1000) -> List[Dict[str, Any]]:
        """Latest trades, newest first."""
        try:
            result = await self.db_manager.select(
                self.config.trades_table,
                order_by="timestamp",
                descending=True,
                limit=limit,
            )
            return result.data or []
        except Exception as e:
            logger.error(f"Failed to get recent trades: {e}")
            raise

    async def get_trades_between(self, start_iso: str, end_iso: str,
                                 exchange: Optional[str] = None) -> List[Dict[str, Any]]:
        """Trades with ``start <= timestamp <= end``, optionally for one exchange."""
        filters: Dict[str, Any] = {"timestamp": {"gte": start_iso, "lte": end_iso}}
        if exchange:
            filters["exchange"] = exchange.lower()

        try:
            result = await self.db_manager.select(
                self.config.trades_table,
                columns=PNL_COLUMNS,
                filters=filters,
            )
            return result.data or []
        except Exception as e:
            logger.error(f"Failed to get trades between {start_iso} and {end_iso}: {e}")
            raise

    async def get_active_futures(self, limit: int = 1000) -> List[Dict[str, Any]]:
        try:
            result = await self.db_manager.select(
                self.config.active_futures_table,
                order_by="id",
                descending=True,
                limit=limit,
            )
            return result.data or []
        except Exception as e:
            logger.error(f"Failed to get active futures: {e}")
            raise

    async def get_recent_alerts(self, limit: int = 1000) -> List[Dict[str, Any]]:
        try:
            result = await self.db_manager.select(
                self.config.alerts_table,
                order_by="timestamp",
                descending=True,
                limit=limit,
            )
            return result.data or []
        except Exception as e:
            logger.error(f"Failed to get alerts: {e}")
            raise

    async def get_transactions(self, type_: Optional[str] = None, asset: Optional[str] = None,
                               symbol: Optional[str] = None, search: Optional[str] = None,
                               date_from: Optional[str] = None, date_to: Optional[str] = None,
                               sort_by: str = "time", sort_order: str = "DESC",
                               limit: int = 1000, offset: int = 0) -> Dict[str, Any]:
        """Paginated transaction history with the exact total count."""
        filters: Dict[str, Any] = {}
        for column, value in (("type", type_), ("asset", asset), ("symbol", symbol)):
            if value and value != "all":
                filters[column] = value

        time_range: Dict[str, str] = {}
        if date_from:
            time_range["gte"] = date_from
        if date_to:
            time_range["lte"] = date_to
        if time_range:
            filters["time"] = time_range

        or_filter = None
        if search:
            or_filter = ",".join(f"{column}.ilike.%{search}%" for column in TRANSACTION_SEARCH_COLUMNS)

        try:
            result = await self.db_manager.select(
                self.config.transactions_table,
                filters=filters,
                or_filter=or_filter,
                order_by=sort_by,
                descending=sort_order.upper() != "ASC",
                limit=limit,
                offset=offset,
                count="exact",
            )
        except Exception as e:
            logger.error(f"Failed to get transaction history: {e}")
            raise

        return {
            "transactions": result.data or [],
            "total": result.count or 0,
            "limit": limit,
            "offset": offset,
        }
