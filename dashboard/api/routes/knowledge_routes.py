"""
Knowledge API Routes

AI video-analysis records, channel list and aggregated analytics.
"""

from fastapi import APIRouter, Body, Depends, Query
from typing import Any, List, Optional
import logging

from dashboard.api.core.app_context import AppContext, get_context
from dashboard.core.errors import DashboardError, RequestValidationFailed
from dashboard.core.response_models import error_response

logger = logging.getLogger(__name__)
router = APIRouter()


def _csv(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    items = [item.strip() for item in value.split(",") if item.strip()]
    return items or None


@router.get("/knowledge", summary="List knowledge entries")
async def list_knowledge(days: Optional[int] = Query(None, ge=1, description="Only entries from the last N days"),
                         limit: Optional[int] = Query(None, ge=1, description="Maximum entries"),
                         context: AppContext = Depends(get_context)):
    try:
        return {"knowledge": await context.knowledge.list(days=days, limit=limit)}
    except DashboardError as e:
        logger.error(f"Knowledge fetch error: {e.message}")
        return error_response(500, "Failed to fetch knowledge data", details=e.message)


@router.post("/knowledge", summary="Bulk insert knowledge entries")
async def insert_knowledge(body: Any = Body(None), context: AppContext = Depends(get_context)):
    """Accepts one entry, a list, or an object keyed by index. Entries whose link exists are skipped."""
    try:
        return await context.knowledge.insert(body)
    except RequestValidationFailed as e:
        return e.to_response()
    except DashboardError as e:
        logger.error(f"Knowledge insert failed: {e.message}")
        return error_response(500, "Database error", details=e.message)


@router.get("/knowledge/analytics", summary="Aggregate rpoints by project, category and date")
async def knowledge_analytics(channels: Optional[str] = Query(None, description="Comma-separated channel names"),
                              models: Optional[str] = Query(None, description="Comma-separated model names"),
                              context: AppContext = Depends(get_context)):
    try:
        return await context.knowledge.analytics(channels=_csv(channels), models=_csv(models))
    except DashboardError as e:
        logger.error(f"Knowledge analytics failed: {e.message}")
        return error_response(500, "Failed to build analytics", details=e.message)


@router.get("/channels", summary="List channel names")
async def list_channels(context: AppContext = Depends(get_context)):
    try:
        return {"channels": await context.knowledge.channels()}
    except DashboardError as e:
        logger.error(f"Channels fetch error: {e.message}")
        return error_response(500, "Failed to fetch channels", details=e.message)
