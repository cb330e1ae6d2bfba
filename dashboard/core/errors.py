"""
Dashboard exception hierarchy.

Each error carries the HTTP status and error code a route handler converts it
to, so services raise and routes translate without re-deciding the status.
"""

from typing import Any, Dict, List, Optional

from fastapi.responses import JSONResponse

from dashboard.core.response_models import ErrorCode


class DashboardError(Exception):
    """Base class for errors surfaced by dashboard services."""

    status_code: int = 500
    error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body

    def to_response(self, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.to_body(), headers=headers)


class UpstreamError(DashboardError):
    """A third-party HTTP call failed (network, timeout or non-2xx)."""

    status_code = 502
    error_code = ErrorCode.UPSTREAM_ERROR

    def __init__(self, message: str, status: Optional[int] = None, details: Optional[Any] = None):
        super().__init__(message, details)
        self.status = status

    @property
    def is_rate_limited(self) -> bool:
        return self.status == 429


class UpstreamUnavailableError(DashboardError):
    """No live data and no cache to fall back on."""

    status_code = 500
    error_code = ErrorCode.UPSTREAM_ERROR


class RateLimitedError(DashboardError):
    """Request refused by local throttling or an upstream 429."""

    status_code = 429
    error_code = ErrorCode.RATE_LIMIT_ERROR

    def __init__(self, message: str = "Rate limit exceeded", retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        if self.retry_after is not None:
            body["retryAfter"] = self.retry_after
        return body


class QuotaExhaustedError(RateLimitedError):
    """Monthly fallback-provider quota reached."""

    error_code = ErrorCode.QUOTA_EXHAUSTED

    def __init__(self, message: str = "Monthly API limit reached", calls_remaining: int = 0):
        super().__init__(message)
        self.calls_remaining = calls_remaining


class RequestValidationFailed(DashboardError):
    """Request body failed validation; details lists every violation."""

    status_code = 400
    error_code = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str = "Validation failed", violations: Optional[List[str]] = None):
        super().__init__(message, violations)
        self.violations = violations or []


class ConfigurationError(DashboardError):
    """A required environment variable is missing."""

    status_code = 500
    error_code = ErrorCode.CONFIGURATION_ERROR


class NotFoundError(DashboardError):
    status_code = 404
    error_code = ErrorCode.NOT_FOUND


class DatabaseError(DashboardError):
    status_code = 500
    error_code = ErrorCode.DATABASE_ERROR
