"""
Core Database Manager

This module provides core database operations and utilities.
"""

import logging
import time
from typing import Optional, Dict, Any, List, Union

from dashboard.core.errors import DatabaseError
from dashboard.database.core.database_config import DatabaseConfig, database_config
from dashboard.database.core.connection_manager import DatabaseConnectionManager

logger = logging.getLogger(__name__)

FILTER_OPERATORS = ("eq", "neq", "gt", "gte", "lt", "lte", "ilike", "like", "in_")


class DatabaseManager:
    """Core database manager providing common database operations."""

    def __init__(self, client: Optional[Any] = None,
                 connection_manager: Optional[DatabaseConnectionManager] = None,
                 config: Optional[DatabaseConfig] = None):
        """Initialize the database manager."""
        self.config = config or database_config
        self._client = client
        self.connection_manager = connection_manager or DatabaseConnectionManager(self.config)

    @property
    def client(self):
        if self._client is None:
            self._client = self.connection_manager.get_client()
        return self._client

    async def execute_query(self, query_builder, description: str):
        """Execute a query builder, logging slow queries and wrapping failures."""
        start_time = time.time()

        try:
            if self.config.enable_query_logging:
                logger.info(f"Executing query: {description}")

            result = query_builder.execute()

            query_time = time.time() - start_time
            if query_time > self.config.slow_query_threshold:
                logger.warning(f"Slow query detected ({description}): {query_time:.3f}s")

            return result

        except Exception as e:
            logger.error(f"Database query failed ({description}): {e}")
            raise DatabaseError(f"Database error: {e}") from e

    def _apply_filters(self, query, filters: Optional[Dict[str, Any]]):
        if not filters:
            return query
        for key, value in filters.items():
            if isinstance(value, dict):
                # Handle operator filters such as {"gte": start, "lte": end}
                for op, val in value.items():
                    if op not in FILTER_OPERATORS:
                        raise ValueError(f"Unsupported filter operator: {op}")
                    query = getattr(query, op)(key, val)
            else:
                query = query.eq(key, value)
        return query

    async def select(self, table: str, columns: Union[str, List[str]] = "*",
                     filters: Optional[Dict[str, Any]] = None,
                     order_by: Optional[str] = None,
                     descending: bool = False,
                     limit: Optional[int] = None,
                     offset: Optional[int] = None,
                     count: Optional[str] = None,
                     or_filter: Optional[str] = None):
        """Select rows from a table.

        ``offset`` switches pagination to a range request of ``limit`` rows;
        ``count="exact"`` asks for the total row count alongside the page.
        """
        cols = ",".join(columns) if isinstance(columns, list) else columns
        query = self.client.table(table)
        query = query.select(cols, count=count) if count else query.select(cols)

        query = self._apply_filters(query, filters)

        if or_filter:
            query = query.or_(or_filter)

        if order_by:
            query = query.order(order_by, desc=descending)

        if offset is not None:
            page_size = limit or self.config.default_page_size
            query = query.range(offset, offset + page_size - 1)
        elif limit:
            query = query.limit(limit)

        return await self.execute_query(query, f"select {cols} from {table}")

    async def insert(self, table: str, data: Union[Dict[str, Any], List[Dict[str, Any]]]):
        """Insert one row or a batch of rows."""
        result = await self.execute_query(self.client.table(table).insert(data), f"insert into {table}")
        rows = len(data) if isinstance(data, list) else 1
        logger.info(f"Inserted {rows} row(s) into {table}")
        return result

    async def update(self, table: str, data: Dict[str, Any],
                     filters: Optional[Dict[str, Any]] = None):
        """Update rows matching ``filters``."""
        query = self._apply_filters(self.client.table(table).update(data), filters)
        result = await self.execute_query(query, f"update {table}")
        logger.info(f"Updated {table} where {filters}")
        return result
