"""
P&L aggregation over closed trades.
"""

import logging
import time
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Dict, List, Optional

from dashboard.core.errors import RequestValidationFailed
from dashboard.database.repositories.trade_repository import TradeRepository

logger = logging.getLogger(__name__)

NAMED_RANGES = ("today", "yesterday", "7days", "30days")
PERIODS = ("day", "week")


@dataclass
class DateRange:
    start: datetime
    end: datetime

    def to_dict(self) -> Dict[str, str]:
        return {"start": _iso_utc(self.start), "end": _iso_utc(self.end)}


def _iso_utc(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_iso(value: Optional[str], tz: tzinfo) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=tz)


def resolve_date_range(now: datetime, period: str = "day", range_: Optional[str] = None,
                       from_: Optional[str] = None, to: Optional[str] = None) -> DateRange:
    """Work out the trade window for a P&L request.

    Precedence: explicit ``from``/``to``, then a named range, then ``period``.
    ``now`` must be timezone-aware; its zone defines calendar days.

    Raises:
        RequestValidationFailed: when falling back to an unknown period.
    """
    tz = now.tzinfo
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)

    start = _parse_iso(from_, tz)
    if start is not None:
        return DateRange(start, _parse_iso(to, tz) or now)

    if range_ == "today":
        return DateRange(today, now)
    if range_ == "yesterday":
        return DateRange(today - timedelta(days=1), today - timedelta(milliseconds=1))
    if range_ == "7days":
        return DateRange(today - timedelta(days=7), now)
    if range_ == "30days":
        return DateRange(today - timedelta(days=30), now)

    if period == "day":
        return DateRange(today, now)
    if period == "week":
        return DateRange(today - timedelta(days=now.weekday()), now)

    raise RequestValidationFailed("Invalid period. Use 'day' or 'week'")


def _pnl(trade: Dict[str, Any]) -> float:
    return float(trade.get("pnl_usd") or 0)


def _trade_summary(trade: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if trade is None:
        return None
    return {
        "pnl_usd": trade.get("pnl_usd"),
        "coin_symbol": trade.get("coin_symbol"),
        "trader": trade.get("trader"),
        "timestamp": trade.get("timestamp"),
    }


def summarize_pnl(trades: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Totals, win rate, best/worst trade and the five best coins."""
    total_pnl = sum(_pnl(t) for t in trades)
    net_pnl = sum(float(t.get("net_pnl") or 0) for t in trades)
    total_trades = len(trades)
    profitable = sum(1 for t in trades if _pnl(t) > 0)
    losing = sum(1 for t in trades if _pnl(t) < 0)

    best = worst = None
    for trade in trades:
        if best is None or _pnl(trade) > _pnl(best):
            best = trade
        if worst is None or _pnl(trade) < _pnl(worst):
            worst = trade

    by_coin: Dict[str, Dict[str, float]] = defaultdict(lambda: {"totalPnL": 0.0, "tradeCount": 0})
    for trade in trades:
        coin = trade.get("coin_symbol") or "Unknown"
        by_coin[coin]["totalPnL"] += _pnl(trade)
        by_coin[coin]["tradeCount"] += 1

    top_coins = sorted(by_coin.items(), key=lambda item: item[1]["totalPnL"], reverse=True)[:5]

    return {
        "summary": {
            "totalPnL": round(total_pnl, 2),
            "netPnL": round(net_pnl, 2),
            "totalTrades": total_trades,
            "profitableTrades": profitable,
            "losingTrades": losing,
            "winRate": round(profitable / total_trades * 100, 2) if total_trades else 0,
            "averagePnL": round(total_pnl / total_trades, 2) if total_trades else 0,
        },
        "bestTrade": _trade_summary(best),
        "worstTrade": _trade_summary(worst),
        "topCoins": [
            {"coin": coin, "totalPnL": round(data["totalPnL"], 2), "tradeCount": data["tradeCount"]}
            for coin, data in top_coins
        ],
    }


class PnLService:
    """Builds the P&L report for a date window and platform."""

    def __init__(self, trades: TradeRepository, clock=time.time, tz: Optional[tzinfo] = None):
        self.trades = trades
        self.clock = clock
        self.tz = tz

    def now(self) -> datetime:
        if self.tz is None:
            # Server local time
            return datetime.fromtimestamp(self.clock()).astimezone()
        return datetime.fromtimestamp(self.clock(), tz=self.tz)

    async def get_report(self, period: str = "day", platform: str = "all",
                         range_: Optional[str] = None, from_: Optional[str] = None,
                         to: Optional[str] = None) -> Dict[str, Any]:
        now = self.now()
        window = resolve_date_range(now, period=period, range_=range_, from_=from_, to=to)
        exchange = None if platform == "all" else platform

        trades = await self.trades.get_trades_between(
            window.start.astimezone(timezone.utc).isoformat(),
            window.end.astimezone(timezone.utc).isoformat(),
            exchange=exchange,
        )
        logger.info(f"P&L over {len(trades)} trades ({window.start} - {window.end}, platform={platform})")

        report = {
            "period": period,
            "platform": platform,
            "dateRange": window.to_dict(),
        }
        report.update(summarize_pnl(trades))
        report["lastUpdated"] = _iso_utc(now)
        return report
