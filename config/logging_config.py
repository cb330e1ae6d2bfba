"""
Centralized Logging Configuration

This module provides the dashboard's logging setup with separate handlers
per concern so request traffic, upstream market-data calls and failures can
be followed independently.

Log Categories:
- Endpoints: File-based, one line per API request
- Market Data: File-based, cache/throttle/quota decisions and upstream calls
- Errors: File-based, errors only
- General: File-based, application-wide logs
- Console: warnings and above from every stream
"""

import logging
import sys
from datetime import datetime
from pathlib import Path


class ProductionLoggingConfig:
    """Logging configuration with separated log streams."""

    def __init__(self, log_dir: str = "logs"):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d")
        self.log_files = {
            'endpoints': self.log_dir / f"endpoints_{timestamp}.log",
            'market_data': self.log_dir / f"market_data_{timestamp}.log",
            'errors': self.log_dir / f"errors_{timestamp}.log",
            'general': self.log_dir / f"dashboard_{timestamp}.log"
        }

        self._setup_loggers()

    def _setup_loggers(self):
        """Set up all logger configurations."""
        logging.getLogger().handlers.clear()

        root_logger = logging.getLogger()
        root_logger.setLevel(logging.INFO)

        self._create_formatters()
        self._setup_handlers()

        root_logger.addHandler(self.handlers['errors'])
        root_logger.addHandler(self.handlers['console'])

        self._configure_specific_loggers()

    def _create_formatters(self):
        """Create formatters for different log types."""
        self.file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        self.console_formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%H:%M:%S'
        )

    def _file_handler(self, name: str, level: int, formatter: logging.Formatter) -> logging.FileHandler:
        handler = logging.FileHandler(self.log_files[name], encoding='utf-8')
        handler.setLevel(level)
        handler.setFormatter(formatter)
        return handler

    def _setup_handlers(self):
        """Set up file and console handlers."""
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(self.console_formatter)

        self.handlers = {
            'general': self._file_handler('general', logging.INFO, self.file_formatter),
            'endpoints': self._file_handler('endpoints', logging.INFO, self.file_formatter),
            'market_data': self._file_handler('market_data', logging.INFO, self.file_formatter),
            'errors': self._file_handler('errors', logging.ERROR, self.file_formatter),
            'console': console_handler
        }

    def _configure_specific_loggers(self):
        """Route package loggers to their streams."""
        routing = {
            'endpoints': [
                'dashboard.api.core.api_middleware',
                'dashboard.api.routes',
            ],
            'market_data': [
                'dashboard.services.market_data',
                'dashboard.core.http_client',
            ],
            'general': [
                'dashboard',
                'config',
                '__main__',
            ],
        }

        for stream, logger_names in routing.items():
            for logger_name in logger_names:
                logger = logging.getLogger(logger_name)
                logger.setLevel(logging.INFO)
                logger.addHandler(self.handlers[stream])
                logger.addHandler(self.handlers['errors'])
                logger.addHandler(self.handlers['console'])
                logger.propagate = False


def setup_production_logging(log_dir: str = "logs") -> ProductionLoggingConfig:
    """Set up production logging configuration."""
    return ProductionLoggingConfig(log_dir)

