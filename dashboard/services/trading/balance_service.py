"""
Balance grouping for the platform cards.
"""

from typing import Any, Dict, List, Optional

from dashboard.database.repositories.account_repository import AccountRepository


def _amount(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def group_balances(rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Group balance rows per ``platform-account_type`` preserving first-seen order."""
    groups: Dict[str, Dict[str, Any]] = {}
    for row in rows:
        key = f"{row.get('platform')}-{row.get('account_type')}"
        group = groups.get(key)
        if group is None:
            group = groups[key] = {
                "platform": row.get("platform"),
                "accountType": row.get("account_type"),
                "balances": [],
                "totalBalanceUSDT": 0.0,
                "totalWalletBalance": 0.0,
                "totalUnrealizedProfit": 0.0,
                "lastUpdated": row.get("last_updated"),
            }

        total = _amount(row.get("total"))
        group["balances"].append({
            "asset": row.get("asset"),
            "free": row.get("free"),
            "locked": row.get("locked"),
            "total": row.get("total"),
            "usdValue": total,
        })
        group["totalBalanceUSDT"] += total
        group["totalWalletBalance"] += total
        group["totalUnrealizedProfit"] += _amount(row.get("unrealized_pnl"))

    data = list(groups.values())
    return {
        "success": True,
        "data": data,
        "platforms": [{"platform": g["platform"], "accountType": g["accountType"]} for g in data],
    }


class BalanceService:
    def __init__(self, accounts: AccountRepository):
        self.accounts = accounts

    async def get_balances(self, platform: Optional[str] = None,
                           account_type: Optional[str] = None) -> Dict[str, Any]:
        rows = await self.accounts.get_balances(platform=platform, account_type=account_type)
        return group_balances(rows)
