"""
Trading Settings Service

Per-exchange trader configuration (position size and leverage) stored in
``trader_exchange_config``.
"""

import logging
from typing import Any, Dict, Optional

from dashboard.core.errors import RequestValidationFailed
from dashboard.database.repositories.account_repository import AccountRepository

logger = logging.getLogger(__name__)

DEFAULT_POSITION_SIZE = 100
DEFAULT_LEVERAGE = 1
DEFAULT_MAX_POSITION_SIZE = 1000
UPDATED_BY = "admin"


def settings_from_row(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row.get("id"),
        "traderId": row.get("trader_id"),
        "positionSize": row.get("position_size") or DEFAULT_POSITION_SIZE,
        "leverage": row.get("leverage") or DEFAULT_LEVERAGE,
        "maxPositionSize": DEFAULT_MAX_POSITION_SIZE,
        "enabled": True,
        "createdAt": row.get("created_at"),
        "updatedAt": row.get("updated_at"),
        "updatedBy": row.get("updated_by"),
        "traderIdNorm": row.get("trader_id_norm"),
    }


class TradingSettingsService:
    def __init__(self, accounts: AccountRepository):
        self.accounts = accounts

    async def get_settings(self) -> Dict[str, Any]:
        rows = await self.accounts.get_exchange_configs()
        return {"settings": {row.get("exchange"): settings_from_row(row) for row in rows}}

    async def add_exchange(self, exchange: Optional[str], trader_id: Optional[str],
                           leverage: Optional[int] = None,
                           position_size: Optional[float] = None) -> Dict[str, Any]:
        if not exchange or not trader_id:
            raise RequestValidationFailed("Exchange and trader ID are required")

        row = await self.accounts.add_exchange_config({
            "trader_id": trader_id,
            "exchange": exchange,
            "leverage": leverage or DEFAULT_LEVERAGE,
            "position_size": position_size or DEFAULT_POSITION_SIZE,
            "updated_by": UPDATED_BY,
            "trader_id_norm": trader_id.lower(),
        })
        logger.info(f"Added exchange config {exchange} for {trader_id}")
        return {"success": True, "message": "Exchange added successfully", "data": row}

    async def update_settings(self, settings: Any) -> Dict[str, Any]:
        if not isinstance(settings, dict) or not settings:
            raise RequestValidationFailed("Invalid settings format")

        for exchange, values in settings.items():
            values = values if isinstance(values, dict) else {}
            await self.accounts.update_exchange_config(exchange, {
                "leverage": values.get("leverage"),
                "position_size": values.get("positionSize"),
                "updated_by": UPDATED_BY,
            })
        logger.info(f"Saved trading settings for {', '.join(settings)}")
        return {"success": True, "message": "Trading settings saved successfully", "settings": settings}
