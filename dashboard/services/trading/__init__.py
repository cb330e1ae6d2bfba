from .pnl_service import DateRange, resolve_date_range, summarize_pnl, PnLService
from .balance_service import group_balances, BalanceService
from .binance_account import BinanceAccountService, futures_balances, spot_balances
from .trading_settings import TradingSettingsService, settings_from_row

__all__ = [
    'DateRange',
    'resolve_date_range',
    'summarize_pnl',
    'PnLService',
    'group_balances',
    'BalanceService',
    'BinanceAccountService',
    'futures_balances',
    'spot_balances',
    'TradingSettingsService',
    'settings_from_row',
]
