"""
Tests for the shared HTTP client retry handling.
"""

import pytest
from unittest.mock import AsyncMock, call, patch

from dashboard.core.errors import UpstreamError
from dashboard.core.http_client import HttpClient, RetryPolicy

URL = "https://api.example.com/coins"


class TestRetryPolicy:
    """Test RetryPolicy constructors."""

    def test_none_is_single_attempt(self):
        policy = RetryPolicy.none()

        assert policy.max_attempts == 1
        assert policy.rate_limit_wait is None
        assert policy.retry_on_status(500) is False

    def test_linear_backoff_grows_by_step(self):
        policy = RetryPolicy.linear(max_attempts=3, step=1.0)

        assert policy.max_attempts == 3
        assert policy.backoff(1) == 1.0
        assert policy.backoff(2) == 2.0
        assert policy.rate_limit_wait(2) == 2.0
        assert policy.retry_on_status(None) is True


class TestHttpClientGetJson:
    """Test HttpClient.get_json against a patched transport."""

    @pytest.mark.asyncio
    async def test_returns_decoded_json(self):
        sleep = AsyncMock()
        client = HttpClient(sleep=sleep)

        with patch.object(client, "_request_json", AsyncMock(return_value={"ok": True})) as request:
            result = await client.get_json(URL, params={"page": "1"})

        assert result == {"ok": True}
        request.assert_awaited_once_with(URL, {"page": "1"}, None, 30.0)
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_without_policy_failure_propagates_immediately(self):
        sleep = AsyncMock()
        client = HttpClient(sleep=sleep)
        failure = UpstreamError("boom", status=500)

        with patch.object(client, "_request_json", AsyncMock(side_effect=failure)) as request:
            with pytest.raises(UpstreamError) as exc_info:
                await client.get_json(URL)

        assert exc_info.value is failure
        assert request.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rate_limited_then_success(self):
        """Two 429s then a 200: waits 1s then 2s and returns the payload."""
        sleep = AsyncMock()
        client = HttpClient(sleep=sleep)
        responses = [
            UpstreamError("limited", status=429),
            UpstreamError("limited", status=429),
            {"id": "bitcoin"},
        ]

        with patch.object(client, "_request_json", AsyncMock(side_effect=responses)) as request:
            result = await client.get_json(URL, policy=RetryPolicy.linear(3, 1.0))

        assert result == {"id": "bitcoin"}
        assert request.await_count == 3
        assert sleep.await_args_list == [call(1.0), call(2.0)]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        sleep = AsyncMock()
        client = HttpClient(sleep=sleep)
        failures = [UpstreamError(f"attempt {n}", status=503) for n in range(1, 4)]

        with patch.object(client, "_request_json", AsyncMock(side_effect=failures)) as request:
            with pytest.raises(UpstreamError) as exc_info:
                await client.get_json(URL, policy=RetryPolicy.linear(3, 1.0))

        assert exc_info.value.message == "attempt 3"
        assert request.await_count == 3
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_non_retryable_status_stops(self):
        sleep = AsyncMock()
        client = HttpClient(sleep=sleep)
        policy = RetryPolicy(max_attempts=3, retry_on_status=lambda status: status == 503)

        with patch.object(client, "_request_json", AsyncMock(side_effect=UpstreamError("nope", status=404))) as request:
            with pytest.raises(UpstreamError):
                await client.get_json(URL, policy=policy)

        assert request.await_count == 1
        sleep.assert_not_awaited()


    @pytest.mark.asyncio
    async def test_zero_attempt_policy_still_raises_upstream_error(self):
        sleep = AsyncMock()
        client = HttpClient(sleep=sleep)
        failure = UpstreamError("down", status=503)

        with patch.object(client, "_request_json", AsyncMock(side_effect=failure)) as request:
            with pytest.raises(UpstreamError) as exc_info:
                await client.get_json(URL, policy=RetryPolicy(max_attempts=0))

        assert exc_info.value is failure
        assert request.await_count == 1
        sleep.assert_not_awaited()


class TestUpstreamError:
    """Test UpstreamError helpers."""

    def test_is_rate_limited(self):
        assert UpstreamError("x", status=429).is_rate_limited is True
        assert UpstreamError("x", status=500).is_rate_limited is False
        assert UpstreamError("x").is_rate_limited is False
