"""
Account Repository

Balance snapshots and per-exchange trader configuration.
"""

import logging
from typing import Optional, Dict, Any, List

from dashboard.database.core.database_manager import DatabaseManager

logger = logging.getLogger(__name__)


class AccountRepository:
    """Repository for balances and trader exchange configuration."""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager
        self.config = db_manager.config

    async def get_balances(self, platform: Optional[str] = None,
                           account_type: Optional[str] = None) -> List[Dict[str, Any]]:
        filters: Dict[str, Any] = {}
        if platform:
            filters["platform"] = platform
        if account_type:
            filters["account_type"] = account_type

        try:
            result = await self.db_manager.select(
                self.config.balances_table,
                filters=filters,
                order_by="last_updated",
                descending=True,
            )
            return result.data or []
        except Exception as e:
            logger.error(f"Failed to get balances: {e}")
            raise

    async def get_exchange_configs(self) -> List[Dict[str, Any]]:
        try:
            result = await self.db_manager.select(self.config.exchange_config_table, order_by="exchange")
            return result.data or []
        except Exception as e:
            logger.error(f"Failed to get trader exchange config: {e}")
            raise

    async def add_exchange_config(self, row: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            result = await self.db_manager.insert(self.config.exchange_config_table, row)
            return result.data[0] if result.data else None
        except Exception as e:
            logger.error(f"Failed to add exchange config for {row.get('exchange')}: {e}")
            raise

    async def update_exchange_config(self, exchange: str, data: Dict[str, Any]) -> None:
        try:
            await self.db_manager.update(self.config.exchange_config_table, data, filters={"exchange": exchange})
        except Exception as e:
            logger.error(f"Failed to update exchange config for {exchange}: {e}")
            raise
