"""
Analysis API Routes

Delegation to the video-analysis microservice and transcript fetching.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import logging

from dashboard.api.core.app_context import AppContext, get_context
from dashboard.api.models.request_models import AutofetchRequest, VideoUrlRequest
from dashboard.core.errors import ConfigurationError, DashboardError, RequestValidationFailed, UpstreamError
from dashboard.core.response_models import error_response

logger = logging.getLogger(__name__)
router = APIRouter()


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


@router.post("/autofetch", summary="Start batch analysis with a model")
async def autofetch(body: AutofetchRequest, context: AppContext = Depends(get_context)):
    try:
        return await context.analysis.start_batch(body.model)
    except (RequestValidationFailed, ConfigurationError) as e:
        return e.to_response()
    except DashboardError as e:
        logger.error(f"Autofetch failed: {e.message}")
        return error_response(500, "Failed to start analysis", details=e.message)


@router.post("/analyze-youtube", summary="Queue a YouTube video for analysis")
async def analyze_youtube(body: VideoUrlRequest, context: AppContext = Depends(get_context)):
    try:
        return await context.analysis.analyze_youtube(body.url)
    except RequestValidationFailed as e:
        return _message(400, e.message)
    except UpstreamError as e:
        logger.error(f"Analysis service error: {e.message}")
        return _message(e.status or 500, e.message if e.status else "Analysis service error")
    except DashboardError as e:
        logger.error(f"Error processing YouTube analysis request: {e.message}")
        return _message(500, "Internal server error")


@router.post("/transcript", summary="Fetch a YouTube transcript")
async def get_transcript(body: VideoUrlRequest, context: AppContext = Depends(get_context)):
    try:
        return await context.transcripts.get_transcript(body.url)
    except RequestValidationFailed as e:
        return _message(400, e.message)
    except UpstreamError as e:
        logger.error(f"Transcript service error: {e.message}")
        return _message(e.status or 500, e.message if e.status else "Failed to process transcript")
    except DashboardError as e:
        logger.error(f"Transcript error: {e.message}")
        return _message(500, "Failed to process transcript")
