"""
API Middleware Module

Request logging and last-resort error translation for the dashboard API.
"""

import time
import logging
from fastapi import Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from dashboard.core.errors import DashboardError
from dashboard.core.response_models import error_response

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """One log line per request, tagged with the cache state and any throttle hint."""

    def __init__(self, app, slow_request_seconds: float = 5.0):
        super().__init__(app)
        self.slow_request_seconds = slow_request_seconds

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        query = f"?{request.url.query}" if request.url.query else ""
        tags = ""
        if "X-Cache" in response.headers:
            tags += f" cache={response.headers['X-Cache']}"
        if "Retry-After" in response.headers:
            tags += f" retry-after={response.headers['Retry-After']}"

        line = f"[{request.method}] {request.url.path}{query} - {response.status_code} - {elapsed:.3f}s{tags}"
        if elapsed > self.slow_request_seconds:
            logger.warning(f"Slow request {line}")
        else:
            logger.info(line)

        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turns errors that escaped a route handler into JSON error bodies."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except DashboardError as e:
            logger.warning(f"{type(e).__name__} escaped {request.method} {request.url.path}: {e.message}")
            retry_after = getattr(e, "retry_after", None)
            return e.to_response(headers={"Retry-After": str(retry_after)} if retry_after else None)
        except Exception as e:
            logger.error(f"Unhandled error on {request.method} {request.url.path}: {e}", exc_info=True)
            return error_response(500, "Internal server error")


def setup_middleware(app, config):
    """Register CORS, error translation and request logging (outermost last)."""
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(LoggingMiddleware, slow_request_seconds=config.slow_request_seconds)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=config.exposed_headers,
    )
