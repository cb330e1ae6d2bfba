"""
Account API Routes

This module contains API routes for balances, the Binance wallet and
per-exchange trading settings.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from typing import Optional
import logging

from dashboard.api.core.app_context import AppContext, get_context
from dashboard.api.models.request_models import TradingSettingsRequest
from dashboard.core.errors import ConfigurationError, DashboardError, RequestValidationFailed, UpstreamError
from dashboard.core.response_models import error_response

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/balances", summary="Get balances grouped by platform")
async def get_balances(
    platform: Optional[str] = Query(None, description="Platform filter"),
    account_type: Optional[str] = Query(None, description="Account type filter"),
    context: AppContext = Depends(get_context)
):
    try:
        return await context.balances.get_balances(platform=platform, account_type=account_type)
    except DashboardError as e:
        logger.error(f"Error fetching balances: {e.message}")
        return error_response(500, "Failed to fetch balances")

@router.get("/binance", summary="Get Binance account balances")
async def get_binance_account(context: AppContext = Depends(get_context)):
    try:
        return await context.binance.get_account_summary()
    except ConfigurationError as e:
        return e.to_response()
    except Exception as e:
        logger.error(f"Binance API Error: {e}")
        return error_response(500, "Failed to fetch Binance data", details=str(e), platform="Binance")

@router.get("/trading-settings", summary="Get trading settings per exchange")
async def get_trading_settings(context: AppContext = Depends(get_context)):
    try:
        return await context.trading_settings.get_settings()
    except DashboardError as e:
        logger.error(f"Error fetching trading settings: {e.message}")
        return error_response(500, "Failed to fetch trading settings")

@router.post("/trading-settings", summary="Add an exchange or save trading settings")
async def save_trading_settings(body: TradingSettingsRequest, context: AppContext = Depends(get_context)):
    try:
        if body.action == "add_exchange":
            return await context.trading_settings.add_exchange(
                body.exchange, body.traderId, leverage=body.leverage, position_size=body.positionSize)
        return await context.trading_settings.update_settings(body.settings)
    except RequestValidationFailed as e:
        return e.to_response()
    except DashboardError as e:
        logger.error(f"Error saving trading settings: {e.message}")
        return error_response(500, "Failed to save trading settings")

@router.post("/account/refresh-all", summary="Ask the trading backend to refresh every account")
async def refresh_all_accounts(context: AppContext = Depends(get_context)):
    try:
        data = await context.analysis.refresh_all_accounts()
        return JSONResponse(content=data)
    except UpstreamError as e:
        return error_response(e.status or 500, e.message)
    except DashboardError as e:
        logger.error(f"Error calling refresh-all endpoint: {e.message}")
        return e.to_response()
