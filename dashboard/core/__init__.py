from dashboard.core.response_models import ErrorCode, error_response
from dashboard.core.errors import (
    DashboardError, UpstreamError, UpstreamUnavailableError, RateLimitedError,
    QuotaExhaustedError, RequestValidationFailed, ConfigurationError, NotFoundError,
    DatabaseError,
)

__all__ = [
    "ErrorCode",
    "error_response",
    "DashboardError",
    "UpstreamError",
    "UpstreamUnavailableError",
    "RateLimitedError",
    "QuotaExhaustedError",
    "RequestValidationFailed",
    "ConfigurationError",
    "NotFoundError",
    "DatabaseError",
]
