"""
API Core Module

This module contains core API components.
"""

from dashboard.api.core.api_config import api_config, APIConfig
from dashboard.api.core.app_context import AppContext, build_app_context, get_context
from dashboard.api.core.api_middleware import setup_middleware, LoggingMiddleware, ErrorHandlingMiddleware

__all__ = [
    "api_config",
    "APIConfig",
    "AppContext",
    "build_app_context",
    "get_context",
    "setup_middleware",
    "LoggingMiddleware",
    "ErrorHandlingMiddleware"
]
