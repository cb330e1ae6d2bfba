"""
Knowledge Repository

AI video-analysis records. The table name is configurable because
deployments have used different names for it.
"""

import logging
from typing import Optional, Dict, Any, Iterable, List, Set

from dashboard.database.core.database_manager import DatabaseManager

logger = logging.getLogger(__name__)

# Keeps each "link=in.(...)" query string well under URL length limits
LINK_LOOKUP_CHUNK = 100


class KnowledgeRepository:
    """Repository for knowledge-base records."""

    def __init__(self, db_manager: DatabaseManager, table: Optional[str] = None):
        self.db_manager = db_manager
        self.table = table or db_manager.config.knowledge_table

    async def list_entries(self, since_iso: Optional[str] = None,
                           limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Records ordered by date, newest first."""
        filters = {"date": {"gte": since_iso}} if since_iso else None
        try:
            result = await self.db_manager.select(
                self.table,
                filters=filters,
                order_by="date",
                descending=True,
                limit=limit,
            )
            return result.data or []
        except Exception as e:
            logger.error(f"Failed to list knowledge entries: {e}")
            raise

    async def get_existing_links(self, links: Iterable[str]) -> Set[str]:
        """Which of ``links`` are already stored, queried in chunks of the candidates only."""
        wanted = sorted({link for link in links if link})
        existing: Set[str] = set()
        for start in range(0, len(wanted), LINK_LOOKUP_CHUNK):
            chunk = wanted[start:start + LINK_LOOKUP_CHUNK]
            try:
                result = await self.db_manager.select(self.table, columns="link", filters={"link": {"in_": chunk}})
            except Exception as e:
                logger.error(f"Failed to check existing knowledge links: {e}")
                raise
            existing.update(row.get("link") for row in (result.data or []) if row.get("link"))
        return existing

    async def insert_entries(self, rows: List[Dict[str, Any]]) -> None:
        try:
            await self.db_manager.insert(self.table, rows)
        except Exception as e:
            logger.error(f"Failed to insert {len(rows)} knowledge entries: {e}")
            raise

    async def list_channels(self) -> List[str]:
        """Distinct non-empty channel names, sorted case-insensitively."""
        try:
            result = await self.db_manager.select(self.table, columns='"channel name"')
        except Exception as e:
            logger.error(f"Failed to list channels: {e}")
            raise

        channels = {row.get("channel name") for row in (result.data or [])}
        return sorted((c for c in channels if c), key=str.lower)
