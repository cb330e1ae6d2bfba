"""
Transcript Service

Fetches captions locally with youtube-transcript-api and delegates to the
remote transcript service when that fails.
"""

import asyncio
import logging
import re
from typing import Any, Callable, Dict, Optional

from youtube_transcript_api import YouTubeTranscriptApi

from config import settings
from dashboard.core.errors import ConfigurationError, RequestValidationFailed, UpstreamError
from .service_client import ServiceClient

logger = logging.getLogger(__name__)

SOURCE_LOCAL = "local"
SOURCE_REMOTE = "remote"

_VIDEO_ID = re.compile(r"(?:v=|youtu\.be/|/shorts/|/embed/|/live/)([A-Za-z0-9_-]{11})")
_BARE_ID = re.compile(r"^[A-Za-z0-9_-]{11}$")


def extract_video_id(url: str) -> Optional[str]:
    url = url.strip()
    if _BARE_ID.match(url):
        return url
    match = _VIDEO_ID.search(url)
    return match.group(1) if match else None


def fetch_local_transcript(video_id: str) -> str:
    """Blocking caption fetch; run it in an executor."""
    fetched = YouTubeTranscriptApi().fetch(video_id, languages=["en"])
    return " ".join(snippet.text for snippet in fetched).strip()


class TranscriptService:
    def __init__(self, client: Optional[ServiceClient] = None,
                 remote_url: Optional[str] = None,
                 fetcher: Callable[[str], str] = fetch_local_transcript):
        self.client = client or ServiceClient()
        self.remote_url = remote_url if remote_url is not None else settings.TRANSCRIPT_SERVICE_URL
        self.fetcher = fetcher

    async def _fetch_local(self, url: str) -> Optional[str]:
        video_id = extract_video_id(url)
        if not video_id:
            logger.info(f"No video id in {url}; skipping local transcript fetch")
            return None

        loop = asyncio.get_running_loop()
        try:
            transcript = await loop.run_in_executor(None, self.fetcher, video_id)
        except Exception as e:
            # Captions disabled, region blocks and network errors all end in the remote fallback
            logger.warning(f"Local transcript fetch failed for {video_id}: {e}")
            return None
        return transcript or None

    async def get_transcript(self, url: Optional[str]) -> Dict[str, Any]:
        """
        Raises:
            RequestValidationFailed: without a URL.
            ConfigurationError: when the local fetch fails and no remote service is set.
            UpstreamError: when the remote service fails.
        """
        if not url:
            raise RequestValidationFailed("URL is required")

        transcript = await self._fetch_local(url)
        if transcript:
            return {"success": True, "transcript": transcript, "source": SOURCE_LOCAL}

        if not self.remote_url:
            raise ConfigurationError("Transcript service URL is not configured")

        data = await self.client.post_json(self.remote_url, {"youtube_url": url})
        if not isinstance(data, dict) or "transcript" not in data:
            raise UpstreamError("Transcript service returned no transcript")
        return {"success": True, "transcript": data["transcript"], "source": SOURCE_REMOTE}
