"""
Coin API Routes

Single-coin detail and OHLC history.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
import logging

from dashboard.api.core.app_context import AppContext, get_context
from dashboard.core.errors import DashboardError, RateLimitedError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/coins/{coin_id}", summary="Get coin detail")
async def get_coin(coin_id: str, context: AppContext = Depends(get_context)):
    """Accepts a CoinGecko id, ticker, name or a ``cmc-<id>`` CoinMarketCap id."""
    try:
        return await context.coin_details.get_coin(coin_id)
    except DashboardError as e:
        logger.error(f"Error fetching coin data for {coin_id}: {e.message}")
        return e.to_response()


@router.get("/coins/{coin_id}/history", summary="Get coin OHLC history")
async def get_coin_history(coin_id: str,
                           days: str = Query("1", description="Days of history (1, 7, 30, ...)"),
                           context: AppContext = Depends(get_context)):
    try:
        result = await context.coin_history.get_history(coin_id, days)
    except RateLimitedError as e:
        headers = {"Retry-After": str(e.retry_after)} if e.retry_after is not None else None
        return e.to_response(headers=headers)
    except DashboardError as e:
        return e.to_response()

    return JSONResponse(content=result.data, headers={"X-Cache": result.cache_status})
