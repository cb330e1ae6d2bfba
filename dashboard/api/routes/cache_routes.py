"""
Revalidation API Routes
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional
import logging

from dashboard.api.core.app_context import AppContext, get_context
from dashboard.api.models.response_models import ErrorResponse, RevalidateResponse
from dashboard.core.errors import RequestValidationFailed

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/revalidate", summary="Clear the caches behind a page path", response_model=RevalidateResponse,
             responses={400: {"model": ErrorResponse}})
async def revalidate(path: Optional[str] = Query(None, description="Page path, '/' for everything"),
                     context: AppContext = Depends(get_context)):
    try:
        return context.revalidator.revalidate(path)
    except RequestValidationFailed as e:
        return e.to_response()
