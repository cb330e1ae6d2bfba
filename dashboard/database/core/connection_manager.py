"""
Database Connection Manager

This module owns the Supabase client for the process.
"""

import logging
from typing import Optional, Dict, Any
from supabase import create_client, Client

from dashboard.core.errors import ConfigurationError
from dashboard.database.core.database_config import DatabaseConfig, database_config

logger = logging.getLogger(__name__)

class DatabaseConnectionManager:
    """Creates the Supabase client lazily and reports its status."""

    def __init__(self, config: Optional[DatabaseConfig] = None):
        """Initialize the connection manager."""
        self.config = config or database_config
        self._client: Optional[Client] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.config.supabase_url and self.config.supabase_key)

    def initialize(self) -> bool:
        """Create the Supabase client; returns False when credentials are missing or invalid."""
        if self._client is not None:
            return True

        if not self.is_configured:
            logger.error("Database configuration missing: SUPABASE_URL or SUPABASE_KEY")
            return False

        try:
            self._client = create_client(self.config.supabase_url, self.config.supabase_key)
            logger.info("Database connection initialized successfully")
            return True
        except Exception as e:
            logger.error(f"Failed to initialize database connection: {e}")
            return False

    def get_client(self) -> Client:
        """Get the database client.

        Raises:
            ConfigurationError: when the client cannot be created.
        """
        if self._client is None and not self.initialize():
            raise ConfigurationError("Missing Supabase environment variables")
        return self._client

    def close(self) -> None:
        self._client = None
        logger.info("Database client released")

    def get_connection_status(self) -> Dict[str, Any]:
        """Get connection status information."""
        return {
            "initialized": self._client is not None,
            "configured": self.is_configured,
            "url": self.config.supabase_url[:20] + "..." if self.config.supabase_url else None,
        }
