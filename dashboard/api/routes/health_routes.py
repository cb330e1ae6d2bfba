"""
Health Check API Routes

This module contains API routes for health monitoring and system status.
"""

from fastapi import APIRouter, Depends
import logging

from dashboard.api.core.api_config import api_config
from dashboard.api.core.app_context import AppContext, get_context
from dashboard.api.models.response_models import HealthResponse

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/health", summary="Health check", response_model=HealthResponse)
async def health_check(context: AppContext = Depends(get_context)):
    """
    Uptime, cache statistics, fallback quota usage and database configuration.
    The database is reported without issuing a query.
    """
    now = context.clock()
    database = context.db_manager.connection_manager.get_connection_status()
    status = "healthy" if database["configured"] else "degraded"

    return HealthResponse(
        status=status,
        timestamp=int(now * 1000),
        version=api_config.version,
        uptime=round(now - context.started_at, 3),
        database=database,
        caches=context.cache_stats(),
        quota=context.quota.to_dict(),
    )
