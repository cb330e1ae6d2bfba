"""
Tests for balance grouping, the Binance wallet summary and trading settings.
"""

import pytest
from unittest.mock import AsyncMock, Mock

from binance.exceptions import BinanceAPIException

from dashboard.core.errors import ConfigurationError, RequestValidationFailed
from dashboard.database.repositories import AccountRepository
from dashboard.services.trading import (
    BalanceService, BinanceAccountService, TradingSettingsService, futures_balances, group_balances, spot_balances,
)
from tests.conftest import FakeClock


class TestGroupBalances:
    """Test group_balances."""

    def test_groups_by_platform_and_account_type(self):
        rows = [
            {"platform": "binance", "account_type": "futures", "asset": "USDT", "free": 80, "locked": 20,
             "total": 100, "unrealized_pnl": 5, "last_updated": "2023-11-14T10:00:00Z"},
            {"platform": "binance", "account_type": "futures", "asset": "BNB", "free": 1, "locked": 0,
             "total": "2.5", "unrealized_pnl": None, "last_updated": "2023-11-14T09:00:00Z"},
            {"platform": "kucoin", "account_type": "spot", "asset": "USDT", "free": 10, "locked": 0,
             "total": 10, "unrealized_pnl": 0, "last_updated": "2023-11-14T08:00:00Z"},
        ]

        result = group_balances(rows)

        assert result["success"] is True
        assert result["platforms"] == [
            {"platform": "binance", "accountType": "futures"},
            {"platform": "kucoin", "accountType": "spot"},
        ]
        binance = result["data"][0]
        assert len(binance["balances"]) == 2
        assert binance["totalBalanceUSDT"] == 102.5
        assert binance["totalUnrealizedProfit"] == 5
        assert binance["lastUpdated"] == "2023-11-14T10:00:00Z"

    @pytest.mark.asyncio
    async def test_service_filters_rows(self, db_manager, supabase):
        supabase.tables["balances"] = [
            {"platform": "binance", "account_type": "futures", "asset": "USDT", "total": 1,
             "last_updated": "2023-11-14T10:00:00Z"},
            {"platform": "kucoin", "account_type": "futures", "asset": "USDT", "total": 2,
             "last_updated": "2023-11-14T11:00:00Z"},
        ]
        service = BalanceService(AccountRepository(db_manager))

        result = await service.get_balances(platform="kucoin")

        assert [group["platform"] for group in result["data"]] == ["kucoin"]


class TestBinanceBalances:
    """Test wallet balance extraction."""

    def test_futures_skips_empty_assets(self):
        info = {"assets": [
            {"asset": "USDT", "walletBalance": "100", "availableBalance": "60", "unrealizedProfit": "1.5"},
            {"asset": "BNB", "walletBalance": "0", "availableBalance": "0", "unrealizedProfit": "0"},
        ]}

        balances = futures_balances(info)

        assert balances == [{"asset": "USDT", "free": 60.0, "locked": 40.0, "total": 100.0, "unrealizedProfit": 1.5}]

    def test_spot_sums_free_and_locked(self):
        balances = spot_balances({"balances": [{"asset": "BTC", "free": "0.5", "locked": "0.25"}]})

        assert balances[0]["total"] == 0.75


class TestBinanceAccountService:
    """Test BinanceAccountService.get_account_summary."""

    def build(self, client, **kwargs):
        kwargs.setdefault("api_key", "key")
        kwargs.setdefault("api_secret", "secret")
        return BinanceAccountService(testnet=True, client_factory=AsyncMock(return_value=client),
                                     clock=FakeClock(), **kwargs)

    @pytest.mark.asyncio
    async def test_futures_summary(self, binance_client):
        service = self.build(binance_client)

        summary = await service.get_account_summary()

        service.client_factory.assert_awaited_once_with("key", "secret", tld="com", testnet=True)
        binance_client.close_connection.assert_awaited_once()
        assert summary["apiType"] == "futures-account"
        assert summary["accountType"] == "FUTURES"
        assert summary["totalBalanceUSDT"] == 150.5
        assert summary["totalUnrealizedProfit"] == 2.5
        assert summary["balances"][0]["usdValue"] == 150.5
        assert summary["canTrade"] is True

    @pytest.mark.asyncio
    async def test_falls_back_to_spot(self, binance_client):
        response = Mock(status_code=400, text='{"code": -2015, "msg": "Invalid API-key"}')
        response.json.return_value = {"code": -2015, "msg": "Invalid API-key"}
        binance_client.futures_account.side_effect = BinanceAPIException(response, 400, response.text)
        binance_client.get_account.return_value = {
            "balances": [{"asset": "BTC", "free": "1", "locked": "0"}],
            "canTrade": True,
        }
        service = self.build(binance_client)

        summary = await service.get_account_summary()

        assert summary["apiType"] == "spot-account"
        assert summary["platform"] == "Binance Spot"
        assert summary["balances"][0]["usdValue"] == 0.0
        assert summary["totalBalanceUSDT"] == 0.0
        binance_client.close_connection.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_credentials(self, binance_client):
        service = self.build(binance_client, api_key="", api_secret="")

        with pytest.raises(ConfigurationError):
            await service.get_account_summary()
        service.client_factory.assert_not_awaited()


class TestTradingSettingsService:
    """Test per-exchange trading settings."""

    @pytest.fixture
    def service(self, db_manager):
        return TradingSettingsService(AccountRepository(db_manager))

    @pytest.mark.asyncio
    async def test_add_then_read(self, service):
        added = await service.add_exchange("binance", "@Trader", leverage=5)
        settings = await service.get_settings()

        assert added["message"] == "Exchange added successfully"
        assert added["data"]["trader_id_norm"] == "@trader"
        binance = settings["settings"]["binance"]
        assert binance["leverage"] == 5
        assert binance["positionSize"] == 100
        assert binance["maxPositionSize"] == 1000
        assert binance["updatedBy"] == "admin"

    @pytest.mark.asyncio
    async def test_update_settings(self, service, supabase):
        await service.add_exchange("kucoin", "@trader")

        result = await service.update_settings({"kucoin": {"leverage": 3, "positionSize": 250}})

        assert result["success"] is True
        row = supabase.tables["trader_exchange_config"][0]
        assert row["leverage"] == 3
        assert row["position_size"] == 250

    @pytest.mark.asyncio
    async def test_add_requires_exchange_and_trader(self, service):
        with pytest.raises(RequestValidationFailed) as exc_info:
            await service.add_exchange("binance", None)

        assert exc_info.value.message == "Exchange and trader ID are required"

    @pytest.mark.asyncio
    async def test_update_rejects_empty_settings(self, service):
        with pytest.raises(RequestValidationFailed):
            await service.update_settings({})
