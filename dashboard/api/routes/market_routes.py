"""
Market Data API Routes

Symbol resolution across CoinGecko and CoinMarketCap.
"""

from fastapi import APIRouter, Depends
import logging

from dashboard.api.core.app_context import AppContext, get_context
from dashboard.api.models.request_models import FallbackSymbolsRequest, SymbolsRequest
from dashboard.core.errors import DashboardError, RateLimitedError
from dashboard.core.response_models import error_response

logger = logging.getLogger(__name__)
router = APIRouter()

FALLBACK_ONLY_MESSAGE = (
    "CMC API should only be used as fallback. Provide 'fallbackMode: true' or 'reason' for usage."
)


def _error(e: DashboardError):
    headers = None
    if isinstance(e, RateLimitedError) and e.retry_after is not None:
        headers = {"Retry-After": str(e.retry_after)}
    return e.to_response(headers=headers)


@router.post("/market-data", summary="Resolve symbols, CoinGecko first then CoinMarketCap")
async def resolve_market_data(body: SymbolsRequest, context: AppContext = Depends(get_context)):
    try:
        result = await context.resolver.resolve(body.symbols, body.mode)
        return result.to_dict()
    except DashboardError as e:
        logger.error(f"Market data resolution failed: {e.message}")
        return _error(e)


@router.post("/coingecko", summary="Resolve coin names against the CoinGecko listing")
async def coingecko_lookup(body: SymbolsRequest, context: AppContext = Depends(get_context)):
    try:
        result = await context.primary_lookup.lookup(body.symbols, body.mode)
        return result.to_dict()
    except DashboardError as e:
        logger.error(f"CoinGecko lookup failed: {e.message}")
        return _error(e)


@router.post("/coinmarketcap", summary="Direct CoinMarketCap lookup (fallback only)")
async def coinmarketcap_lookup(body: FallbackSymbolsRequest, context: AppContext = Depends(get_context)):
    if not context.coinmarketcap.is_configured:
        return error_response(500, "CMC API key not configured")

    if not body.fallbackMode and not body.reason:
        return error_response(400, FALLBACK_ONLY_MESSAGE)

    try:
        if body.reason:
            logger.info(f"CoinMarketCap lookup requested: {body.reason}")
        result = await context.fallback_lookup.lookup_fallback(body.symbols)
        return result.to_dict()
    except DashboardError as e:
        logger.error(f"CoinMarketCap lookup failed: {e.message}")
        return _error(e)


@router.get("/coinmarketcap", summary="Check the CoinMarketCap API key")
async def coinmarketcap_key_check(context: AppContext = Depends(get_context)):
    if not context.coinmarketcap.is_configured:
        return error_response(500, "CMC API key not configured")

    try:
        return await context.coinmarketcap.test_key()
    except DashboardError as e:
        logger.error(f"CMC API key test failed: {e.message}")
        return error_response(500, "API Key test failed", details=e.message)
