"""
Page revalidation.

Services register the in-process caches that back a dashboard page; a
revalidate request for that page path clears them. ``/`` clears everything.
"""

import logging
import time
from typing import Callable, Dict, List, Optional

import httpx

from config import settings
from dashboard.core.errors import RequestValidationFailed

logger = logging.getLogger(__name__)

ROOT_PATH = "/"


class PageRevalidator:
    """Maps page paths to cache-clearing callables."""

    def __init__(self, app_url: Optional[str] = None, clock: Callable[[], float] = time.time,
                 timeout: float = 5.0):
        self.app_url = app_url if app_url is not None else settings.APP_URL
        self.clock = clock
        self.timeout = timeout
        self._registry: Dict[str, Dict[str, Callable[[], int]]] = {}

    def register(self, path: str, name: str, clear: Callable[[], int]) -> None:
        self._registry.setdefault(path, {})[name] = clear

    def registered_paths(self) -> List[str]:
        return sorted(self._registry)

    def revalidate(self, path: Optional[str]) -> Dict[str, object]:
        """Clear every cache registered for ``path``.

        Raises:
            RequestValidationFailed: when no path is given.
        """
        if not path:
            raise RequestValidationFailed("Path parameter is required")

        if path == ROOT_PATH:
            targets = {name: clear for entries in self._registry.values() for name, clear in entries.items()}
        else:
            targets = dict(self._registry.get(path, {}))

        cleared: List[str] = []
        for name, clear in targets.items():
            removed = clear()
            cleared.append(name)
            logger.info(f"Revalidated {path}: cleared {name} ({removed} entries)")

        if not targets:
            logger.info(f"Revalidate requested for {path}; no caches registered")

        return {
            "revalidated": True,
            "now": int(self.clock() * 1000),
            "cleared": cleared,
        }

    async def notify(self, path: str) -> bool:
        """Ask the deployed app to revalidate ``path``. Failures are logged, not raised."""
        if not self.app_url:
            return False

        url = f"{self.app_url.rstrip('/')}/api/revalidate"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, params={"path": path})
                response.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.warning(f"Revalidation failed for {path}: {e}")
            return False
