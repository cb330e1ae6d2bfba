"""
Thin aiohttp wrapper shared by the market-data adapters.

Every outbound call goes through ``HttpClient.get_json`` which applies a
``RetryPolicy`` value, so retry behaviour is declared per call site instead of
being written as ad hoc sleep loops.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import aiohttp

from dashboard.core.errors import UpstreamError

logger = logging.getLogger(__name__)


def _no_wait(attempt: int) -> float:
    return 0.0


def _never(status: Optional[int]) -> bool:
    return False


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry policy.

    ``backoff(attempt)`` and ``rate_limit_wait(attempt)`` return the delay in
    seconds after the given (1-based) failed attempt. ``retry_on_status``
    receives the upstream status, or None for network errors and timeouts.
    When ``rate_limit_wait`` is set a 429 is always retried while attempts
    remain.
    """
    max_attempts: int = 1
    backoff: Callable[[int], float] = _no_wait
    retry_on_status: Callable[[Optional[int]], bool] = _never
    rate_limit_wait: Optional[Callable[[int], float]] = None

    @classmethod
    def none(cls) -> 'RetryPolicy':
        """Single attempt, failures propagate immediately."""
        return cls()

    @classmethod
    def linear(cls, max_attempts: int = 3, step: float = 1.0) -> 'RetryPolicy':
        """Retry any failure with ``step * attempt`` seconds between attempts."""
        def wait(attempt: int) -> float:
            return step * attempt

        return cls(
            max_attempts=max_attempts,
            backoff=wait,
            retry_on_status=lambda status: True,
            rate_limit_wait=wait,
        )


class HttpClient:
    """Shared aiohttp session with JSON decoding and retry handling."""

    def __init__(self, session: Optional[aiohttp.ClientSession] = None,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.session = session
        self._sleep = sleep

    async def _get_session(self) -> aiohttp.ClientSession:
        """Initializes aiohttp ClientSession if not already created."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(headers={"Accept": "application/json"})
        return self.session

    async def close_session(self):
        """Closes the aiohttp ClientSession."""
        if self.session:
            await self.session.close()
            self.session = None

    async def _request_json(self, url: str, params: Optional[Dict[str, Any]],
                            headers: Optional[Dict[str, str]], timeout: float) -> Any:
        session = await self._get_session()
        try:
            async with session.get(
                url,
                params=params,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise UpstreamError(
                        f"{url} returned {response.status}",
                        status=response.status,
                        details=body[:200],
                    )
                return await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise UpstreamError(f"Network error calling {url}: {e}") from e
        except asyncio.TimeoutError as e:
            raise UpstreamError(f"Timeout after {timeout}s calling {url}") from e

    async def get_json(self, url: str, params: Optional[Dict[str, Any]] = None,
                       headers: Optional[Dict[str, str]] = None, timeout: float = 30.0,
                       policy: Optional[RetryPolicy] = None) -> Any:
        """GET ``url`` and decode JSON, retrying according to ``policy``.

        Raises:
            UpstreamError: the last failure once attempts are exhausted or the
                failure is not retryable.
        """
        policy = policy or RetryPolicy.none()
        attempt = 1

        while True:
            try:
                return await self._request_json(url, params, headers, timeout)
            except UpstreamError as e:
                if attempt >= policy.max_attempts:
                    raise

                if e.is_rate_limited and policy.rate_limit_wait is not None:
                    wait = policy.rate_limit_wait(attempt)
                    logger.warning(f"429 from {url}, waiting {wait:.1f}s before attempt {attempt + 1}")
                elif policy.retry_on_status(e.status):
                    wait = policy.backoff(attempt)
                    logger.warning(f"Attempt {attempt} for {url} failed ({e.message}), retrying in {wait:.1f}s")
                else:
                    raise

            await self._sleep(wait)
            attempt += 1
