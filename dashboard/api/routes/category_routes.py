"""
Category API Routes
"""

from fastapi import APIRouter, Depends
import logging

from dashboard.api.core.app_context import AppContext, get_context
from dashboard.core.errors import DashboardError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/categories", summary="List coin categories")
async def list_categories(context: AppContext = Depends(get_context)):
    try:
        return await context.categories.list_categories()
    except DashboardError as e:
        logger.error(f"Error fetching categories: {e.message}")
        return e.to_response()


@router.get("/categories/{category_id}", summary="Get a category by id, name or alias")
async def get_category(category_id: str, context: AppContext = Depends(get_context)):
    try:
        return await context.categories.get_category(category_id)
    except DashboardError as e:
        logger.error(f"Error fetching category {category_id}: {e.message}")
        return e.to_response()
