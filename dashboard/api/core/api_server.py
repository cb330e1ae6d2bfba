"""
API Server Module

This module contains the main FastAPI application server.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging

from dashboard.api.core.api_config import api_config
from dashboard.api.core.api_middleware import setup_middleware
from dashboard.api.core.app_context import AppContext, build_app_context
from dashboard.api.routes import (
    market_routes, coin_routes, category_routes, knowledge_routes, trade_routes,
    account_routes, analysis_routes, cache_routes, health_routes,
)

logger = logging.getLogger(__name__)

ROUTERS = (
    (market_routes.router, "market-data"),
    (coin_routes.router, "coins"),
    (category_routes.router, "categories"),
    (knowledge_routes.router, "knowledge"),
    (trade_routes.router, "trades"),
    (account_routes.router, "account"),
    (analysis_routes.router, "analysis"),
    (cache_routes.router, "cache"),
    (health_routes.router, "health"),
)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the application context on startup unless one was injected, and close it on shutdown."""
    owns_context = getattr(app.state, "context", None) is None
    if owns_context:
        app.state.context = build_app_context()

    logger.info(f"Starting {api_config.title} v{api_config.version}")
    logger.info(f"Server will run on {api_config.host}:{api_config.port}")
    try:
        yield
    finally:
        logger.info(f"Shutting down {api_config.title}")
        if owns_context:
            await app.state.context.close()

async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and parameters are reported as 400 with every violation."""
    violations = [
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
        for error in exc.errors()
    ]
    logger.warning(f"Request validation failed on {request.url.path}: {violations}")
    return JSONResponse(status_code=400, content={"error": "Validation failed", "details": violations})

def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=api_config.title,
        version=api_config.version,
        description=api_config.description,
        debug=api_config.debug,
        lifespan=lifespan,
    )
    if context is not None:
        app.state.context = context

    setup_middleware(app, api_config)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    for router, tag in ROUTERS:
        app.include_router(router, prefix=api_config.prefix, tags=[tag])

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": f"{api_config.title} is running",
            "version": api_config.version,
            "status": "healthy"
        }

    return app

# Create the app instance
app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "dashboard.api.core.api_server:app",
        host=api_config.host,
        port=api_config.port,
        reload=api_config.debug
    )
