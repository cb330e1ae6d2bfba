"""
Trade API Routes

This module contains API routes for trades, P&L, futures positions and the
exchange transaction history.
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional
import asyncio
import logging

from dashboard.api.core.app_context import AppContext, get_context
from dashboard.api.models.response_models import ErrorResponse, TransactionsResponse
from dashboard.core.errors import DashboardError, RequestValidationFailed
from dashboard.core.response_models import error_response

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/trades", summary="Get latest trades")
async def get_trades(context: AppContext = Depends(get_context)):
    try:
        return await context.trades.get_recent_trades()
    except DashboardError as e:
        logger.error(f"Error fetching trades: {e.message}")
        return error_response(500, f"Failed to fetch trades: {e.message}")

@router.get("/pnl", summary="Get P&L summary")
async def get_pnl(
    period: str = Query("day", description="'day' or 'week' when no range is given"),
    platform: str = Query("all", description="Exchange filter or 'all'"),
    range_: Optional[str] = Query(None, alias="range", description="today, yesterday, 7days or 30days"),
    from_: Optional[str] = Query(None, alias="from", description="ISO start timestamp"),
    to: Optional[str] = Query(None, description="ISO end timestamp"),
    context: AppContext = Depends(get_context)
):
    """
    Aggregate P&L over trades in a window. Explicit from/to wins over a named
    range, which wins over period.
    """
    try:
        return await context.pnl.get_report(period=period, platform=platform, range_=range_, from_=from_, to=to)
    except RequestValidationFailed as e:
        return e.to_response()
    except DashboardError as e:
        logger.error(f"P&L API Error: {e.message}")
        return error_response(500, "Failed to fetch P&L data", details=e.message)

@router.get("/active_futures", summary="Get active futures positions")
async def get_active_futures(context: AppContext = Depends(get_context)):
    try:
        return await context.trades.get_active_futures()
    except DashboardError as e:
        logger.error(f"Error fetching active futures: {e.message}")
        return error_response(500, e.message)

@router.get("/transactions", summary="Get exchange transaction history", response_model=TransactionsResponse,
            responses={500: {"model": ErrorResponse}})
async def get_transactions(
    type_: Optional[str] = Query(None, alias="type", description="Transaction type or 'all'"),
    asset: Optional[str] = Query(None, description="Asset or 'all'"),
    symbol: Optional[str] = Query(None, description="Symbol or 'all'"),
    search: Optional[str] = Query(None, description="Substring matched against type, asset and symbol"),
    date_from: Optional[str] = Query(None, alias="dateFrom", description="Earliest time"),
    date_to: Optional[str] = Query(None, alias="dateTo", description="Latest time"),
    limit: int = Query(1000, ge=1, description="Page size"),
    offset: int = Query(0, ge=0, description="Rows to skip"),
    sort_by: str = Query("time", alias="sortBy", description="Sort column"),
    sort_order: str = Query("DESC", alias="sortOrder", description="ASC or DESC"),
    context: AppContext = Depends(get_context)
):
    try:
        return await context.trades.get_transactions(
            type_=type_, asset=asset, symbol=symbol, search=search,
            date_from=date_from, date_to=date_to,
            sort_by=sort_by, sort_order=sort_order,
            limit=limit, offset=offset,
        )
    except DashboardError as e:
        logger.error(f"Error fetching transaction history: {e.message}")
        return error_response(500, "Failed to fetch transaction history")

@router.get("/wealthgroup", summary="Get alerts and trades")
async def get_wealthgroup(context: AppContext = Depends(get_context)):
    try:
        alerts, trades = await asyncio.gather(
            context.trades.get_recent_alerts(),
            context.trades.get_recent_trades(),
        )
        return {"alerts": alerts, "trades": trades}
    except DashboardError as e:
        logger.error(f"Error fetching wealthgroup data: {e.message}")
        return error_response(500, "Failed to fetch wealthgroup data", details=e.message)
