"""
JSON-over-HTTP client for the analysis microservice and trading backend.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from dashboard.core.errors import UpstreamError

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            if body.get(key):
                return str(body[key])
    return f"Service returned status {response.status_code}"


class ServiceClient:
    """POSTs JSON to a sibling service and decodes the JSON reply."""

    def __init__(self, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    async def post_json(self, url: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        """
        Raises:
            UpstreamError: on transport failure or a non-2xx reply; ``status``
                carries the service's status code when there was a reply.
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Request to {url} failed: {e}")
            raise UpstreamError(f"Request to {url} failed: {e}") from e

        if response.is_error:
            message = _error_message(response)
            logger.error(f"Service error from {url} ({response.status_code}): {message}")
            raise UpstreamError(message, status=response.status_code)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(f"Invalid JSON from {url}", status=response.status_code) from e
