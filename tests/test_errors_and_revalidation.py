"""
Tests for error translation and page revalidation.
"""

import json

import httpx
import pytest
from unittest.mock import Mock, patch

from dashboard.core.errors import (
    NotFoundError, QuotaExhaustedError, RateLimitedError, RequestValidationFailed, UpstreamUnavailableError,
)
from dashboard.core.response_models import ErrorCode, error_response
from dashboard.services.revalidation import PageRevalidator
from tests.conftest import FakeClock, START_TIME


class TestDashboardErrors:
    """Test error status codes and bodies."""

    def test_status_codes(self):
        assert NotFoundError("x").status_code == 404
        assert UpstreamUnavailableError("x").status_code == 500
        assert RequestValidationFailed().status_code == 400
        assert QuotaExhaustedError().status_code == 429
        assert QuotaExhaustedError().error_code == ErrorCode.QUOTA_EXHAUSTED

    def test_rate_limited_body_and_response(self):
        error = RateLimitedError(retry_after=3)
        response = error.to_response(headers={"Retry-After": "3"})

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "3"
        assert json.loads(response.body) == {"error": "Rate limit exceeded", "retryAfter": 3}

    def test_validation_details(self):
        error = RequestValidationFailed("Validation failed", ["Missing required field: id"])

        assert error.to_body() == {"error": "Validation failed", "details": ["Missing required field: id"]}

    def test_error_response_drops_none_extras(self):
        response = error_response(500, "Failed", details=None, platform="Binance")

        assert json.loads(response.body) == {"error": "Failed", "platform": "Binance"}


class TestPageRevalidator:
    """Test PageRevalidator registry."""

    def test_clears_registered_path_only(self):
        revalidator = PageRevalidator(app_url="", clock=FakeClock())
        knowledge = Mock(return_value=2)
        categories = Mock(return_value=1)
        revalidator.register("/knowledge", "knowledge", knowledge)
        revalidator.register("/categories", "categories", categories)

        result = revalidator.revalidate("/knowledge")

        assert result == {"revalidated": True, "now": int(START_TIME * 1000), "cleared": ["knowledge"]}
        knowledge.assert_called_once()
        categories.assert_not_called()

    def test_root_clears_each_cache_once(self):
        revalidator = PageRevalidator(app_url="", clock=FakeClock())
        knowledge = Mock(return_value=0)
        revalidator.register("/knowledge", "knowledge", knowledge)
        revalidator.register("/analytics", "knowledge", knowledge)

        result = revalidator.revalidate("/")

        assert result["cleared"] == ["knowledge"]
        knowledge.assert_called_once()
        assert revalidator.registered_paths() == ["/analytics", "/knowledge"]

    def test_unknown_path_clears_nothing(self):
        revalidator = PageRevalidator(app_url="", clock=FakeClock())

        assert revalidator.revalidate("/nowhere")["cleared"] == []

    def test_missing_path(self):
        with pytest.raises(RequestValidationFailed):
            PageRevalidator(app_url="").revalidate("")

    @pytest.mark.asyncio
    async def test_notify_without_app_url(self):
        assert await PageRevalidator(app_url="").notify("/knowledge") is False

    @pytest.mark.asyncio
    async def test_notify_failure_is_logged_not_raised(self):
        revalidator = PageRevalidator(app_url="http://dashboard.local")

        with patch("httpx.AsyncClient.post", side_effect=httpx.ConnectError("refused")):
            assert await revalidator.notify("/knowledge") is False


class TestCorePackageExports:
    """Test the names re-exported by dashboard.core."""

    def test_every_exported_name_resolves(self):
        import dashboard.core as core

        assert core.__all__
        for name in core.__all__:
            assert getattr(core, name) is not None
        assert core.RateLimitedError is RateLimitedError
