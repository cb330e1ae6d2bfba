"""
Database Core Components

Supabase configuration, connection and query execution.
"""

from dashboard.database.core.database_config import DatabaseConfig, database_config
from dashboard.database.core.connection_manager import DatabaseConnectionManager
from dashboard.database.core.database_manager import DatabaseManager

__all__ = [
    "DatabaseConfig",
    "database_config",
    "DatabaseConnectionManager",
    "DatabaseManager"
]
