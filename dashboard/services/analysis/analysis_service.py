"""
Analysis Service

Fire-and-forget delegation to the video-analysis microservice and the
trading backend.
"""

import logging
from typing import Any, Dict, Optional

from config import settings
from dashboard.core.errors import ConfigurationError, RequestValidationFailed
from .service_client import ServiceClient

logger = logging.getLogger(__name__)

REFRESH_ALL_PATH = "/api/v1/account/refresh-all"


class AnalysisService:
    def __init__(self, client: Optional[ServiceClient] = None,
                 batch_url: Optional[str] = None,
                 single_url: Optional[str] = None,
                 backend_url: Optional[str] = None):
        self.client = client or ServiceClient()
        self.batch_url = batch_url if batch_url is not None else settings.ANALYSIS_BATCH_URL
        self.single_url = single_url if single_url is not None else settings.ANALYSIS_SINGLE_URL
        self.backend_url = backend_url if backend_url is not None else settings.BACKEND_API_URL

    async def start_batch(self, model: Optional[str]) -> Dict[str, Any]:
        """Kick off batch analysis of fetched videos with ``model``."""
        if not model:
            raise RequestValidationFailed("AI model is required")
        if not self.batch_url:
            raise ConfigurationError("Analysis service URL is not configured")

        result = await self.client.post_json(self.batch_url, {"model": model})
        logger.info(f"Batch analysis started with model {model}")
        return {"success": True, "message": "Analysis started successfully", "details": result}

    async def analyze_youtube(self, url: Optional[str]) -> Dict[str, Any]:
        """Queue a single video for analysis without waiting for the result."""
        if not url:
            raise RequestValidationFailed("YouTube URL is required")
        if not self.single_url:
            raise ConfigurationError("Analysis service URL is not configured")

        await self.client.post_json(self.single_url, {"Video_url": url})
        logger.info(f"Queued analysis for {url}")
        return {"message": "Analysis task submitted successfully", "status": "queued", "youtube_url": url}

    async def refresh_all_accounts(self) -> Any:
        if not self.backend_url:
            raise ConfigurationError("Backend API URL is not configured")
        return await self.client.post_json(f"{self.backend_url.rstrip('/')}{REFRESH_ALL_PATH}")
