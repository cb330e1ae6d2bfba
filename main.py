#!/usr/bin/env python3
"""
Rubicon Dashboard API - Main Entry Point
"""
import logging

from config import settings

logger = logging.getLogger(__name__)

def setup_logging():
    """Configure logging for the application."""
    from config.logging_config import setup_production_logging

    setup_production_logging(settings.LOG_DIR)

    # Reduce noise from third-party libraries
    for name in ('aiohttp', 'httpx', 'httpcore', 'uvicorn', 'supabase', 'binance'):
        logging.getLogger(name).setLevel(logging.WARNING)

def main():
    """Main entry point for the dashboard API."""
    try:
        from dashboard.api.core.api_config import api_config
        import uvicorn

        logger.info(f"Starting Rubicon Dashboard API on http://{api_config.host}:{api_config.port}")
        logger.info(f"API Documentation: http://{api_config.host}:{api_config.port}/docs")

        uvicorn.run(
            "dashboard.api.core.api_server:app",
            host=api_config.host,
            port=api_config.port,
            reload=api_config.debug,
            log_level="info"
        )

    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.error(f"Error in main: {str(e)}")
        raise

if __name__ == "__main__":
    setup_logging()
    main()
