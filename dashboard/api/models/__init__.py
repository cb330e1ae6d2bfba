"""
API Models Module

This module contains all API data models.
"""

from dashboard.api.models.request_models import (
    SymbolsRequest,
    FallbackSymbolsRequest,
    AutofetchRequest,
    VideoUrlRequest,
    TradingSettingsRequest
)

from dashboard.api.models.response_models import (
    HealthResponse,
    RevalidateResponse,
    TransactionsResponse,
    ErrorResponse
)

__all__ = [
    # Request models
    "SymbolsRequest",
    "FallbackSymbolsRequest",
    "AutofetchRequest",
    "VideoUrlRequest",
    "TradingSettingsRequest",

    # Response models
    "HealthResponse",
    "RevalidateResponse",
    "TransactionsResponse",
    "ErrorResponse"
]
