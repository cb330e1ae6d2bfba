"""
Binance account snapshot.

Reads the futures wallet first and falls back to spot balances when the
futures account holds nothing or is not activated.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from binance import AsyncClient
from binance.exceptions import BinanceAPIException

from config import settings
from dashboard.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

API_TYPE_FUTURES = "futures-account"
API_TYPE_SPOT = "spot-account"
API_TYPE_NOT_ACTIVATED = "futures-not-activated"


def _float(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def futures_balances(account_info: Dict[str, Any]) -> List[Dict[str, Any]]:
    balances = []
    for asset in account_info.get("assets") or []:
        wallet = _float(asset.get("walletBalance"))
        available = _float(asset.get("availableBalance"))
        unrealized = _float(asset.get("unrealizedProfit"))
        if wallet > 0 or unrealized != 0:
            balances.append({
                "asset": asset.get("asset"),
                "free": available,
                "locked": wallet - available,
                "total": wallet,
                "unrealizedProfit": unrealized,
            })
    return balances


def spot_balances(account_info: Dict[str, Any]) -> List[Dict[str, Any]]:
    balances = []
    for asset in account_info.get("balances") or []:
        free = _float(asset.get("free"))
        locked = _float(asset.get("locked"))
        if free > 0 or locked > 0:
            balances.append({
                "asset": asset.get("asset"),
                "free": free,
                "locked": locked,
                "total": free + locked,
                "unrealizedProfit": 0.0,
            })
    return balances


class BinanceAccountService:
    """Builds the Binance wallet summary shown on the trades page."""

    def __init__(self, api_key: Optional[str] = None, api_secret: Optional[str] = None,
                 testnet: Optional[bool] = None, client_factory=None, clock=time.time):
        self.api_key = api_key if api_key is not None else settings.BINANCE_API_KEY
        self.api_secret = api_secret if api_secret is not None else settings.BINANCE_API_SECRET
        self.testnet = settings.BINANCE_TESTNET if testnet is None else testnet
        self.client_factory = client_factory or AsyncClient.create
        self.clock = clock

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_secret)

    async def _create_client(self):
        return await self.client_factory(self.api_key, self.api_secret, tld='com', testnet=self.testnet)

    async def get_account_summary(self) -> Dict[str, Any]:
        """Balances, totals and permissions for the configured Binance account.

        Raises:
            ConfigurationError: without API credentials.
        """
        if not self.is_configured:
            raise ConfigurationError("Binance API credentials not configured")

        client = await self._create_client()
        try:
            api_type = API_TYPE_NOT_ACTIVATED
            try:
                account_info = await client.futures_account()
            except BinanceAPIException as e:
                logger.error(f"Futures account info error: {e}")
                account_info = {}

            if isinstance(account_info.get("assets"), list):
                api_type = API_TYPE_FUTURES
            balances = futures_balances(account_info)

            if not balances:
                try:
                    spot_info = await client.get_account()
                    balances = spot_balances(spot_info)
                    if balances:
                        api_type = API_TYPE_SPOT
                except BinanceAPIException as e:
                    logger.warning(f"Spot account info error: {e}")
        finally:
            await client.close_connection()

        for balance in balances:
            balance["usdValue"] = balance["total"] if balance["asset"] == "USDT" else 0.0

        usdt = next((b for b in balances if b["asset"] == "USDT"), None)
        is_spot = api_type == API_TYPE_SPOT

        return {
            "platform": "Binance Spot" if is_spot else "Binance Futures",
            "accountType": "SPOT" if is_spot else "FUTURES",
            "totalBalanceUSDT": usdt["total"] if usdt else 0.0,
            "totalPortfolioValue": sum(b["usdValue"] for b in balances),
            "totalUnrealizedProfit": sum(b["unrealizedProfit"] for b in balances),
            "totalWalletBalance": sum(b["total"] for b in balances),
            "canTrade": bool(account_info.get("canTrade", False)),
            "canWithdraw": bool(account_info.get("canWithdraw", False)),
            "canDeposit": bool(account_info.get("canDeposit", False)),
            "balances": balances,
            "apiType": api_type,
            "lastUpdated": datetime.fromtimestamp(self.clock(), tz=timezone.utc).isoformat(),
        }
