"""
Error codes and the JSON error body shared by the route handlers.
"""

from typing import Any, Dict
from enum import Enum

from fastapi.responses import JSONResponse


class ErrorCode(Enum):
    """Machine-readable error codes carried by DashboardError subclasses."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    QUOTA_EXHAUSTED = "QUOTA_EXHAUSTED"
    NOT_FOUND = "NOT_FOUND"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


def error_response(status_code: int, error: str, **extra: Any) -> JSONResponse:
    """Build the JSON error body returned by route handlers."""
    body: Dict[str, Any] = {"error": error}
    body.update({k: v for k, v in extra.items() if v is not None})
    return JSONResponse(status_code=status_code, content=body)
