"""
Knowledge Service

Reads and bulk-inserts AI video-analysis records. Inserts are idempotent by
video link.
"""

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from dashboard.database.repositories.knowledge_repository import KnowledgeRepository
from dashboard.services.market_data.market_cache import TimedCache
from dashboard.services.revalidation import PageRevalidator
from .knowledge_analytics import build_knowledge_analytics
from .knowledge_transform import normalize_knowledge_row, normalize_payload, transform_for_insert, validate_items

logger = logging.getLogger(__name__)

KNOWLEDGE_PATH = "/knowledge"
ANALYTICS_PATH = "/analytics"


class KnowledgeService:
    """Knowledge-base reads, inserts and aggregation."""

    def __init__(self, repository: KnowledgeRepository,
                 revalidator: Optional[PageRevalidator] = None,
                 cache_seconds: float = 60,
                 clock=time.time):
        self.repository = repository
        self.revalidator = revalidator
        self.clock = clock
        self.cache: TimedCache = TimedCache(cache_seconds, clock=clock, name="knowledge")

        if revalidator is not None:
            revalidator.register(KNOWLEDGE_PATH, "knowledge", self.cache.clear)
            revalidator.register(ANALYTICS_PATH, "knowledge", self.cache.clear)

    def _since(self, days: Optional[int]) -> Optional[str]:
        if not days:
            return None
        start = datetime.fromtimestamp(self.clock(), tz=timezone.utc) - timedelta(days=days)
        return start.isoformat()

    async def list(self, days: Optional[int] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Normalised records, newest first, optionally restricted to the last ``days``."""
        key = f"{days or 'all'}-{limit or 'all'}"
        cached = self.cache.get_fresh(key)
        if cached is not None:
            logger.debug(f"Knowledge cache hit for {key}")
            return cached.data

        rows = await self.repository.list_entries(since_iso=self._since(days), limit=limit)
        items = [normalize_knowledge_row(row) for row in rows]
        self.cache.set(key, items)
        logger.info(f"Loaded {len(items)} knowledge entries ({key})")
        return items

    async def channels(self) -> List[str]:
        return await self.repository.list_channels()

    async def analytics(self, channels: Optional[List[str]] = None,
                        models: Optional[List[str]] = None) -> Dict[str, Any]:
        items = await self.list()
        return build_knowledge_analytics(items, channels=channels, models=models)

    async def insert(self, body: Any) -> Dict[str, Any]:
        """Validate, transform and insert records whose link is not stored yet.

        Raises:
            RequestValidationFailed: for malformed payloads.
            DatabaseError: when the lookup or insert fails.
        """
        items = normalize_payload(body)
        validate_items(items)

        now = datetime.fromtimestamp(self.clock(), tz=timezone.utc)
        transformed = [transform_for_insert(item, now=now) for item in items]

        existing = await self.repository.get_existing_links(row["link"] for row in transformed)
        new_rows = []
        for row in transformed:
            link = row["link"]
            if link and link in existing:
                continue
            if link:
                existing.add(link)
            new_rows.append(row)

        if not new_rows:
            logger.info(f"Knowledge insert skipped {len(transformed)} existing entries")
            return {
                "success": True,
                "message": "No new data to update",
                "skipped": len(transformed),
                "dataSize": 0,
            }

        await self.repository.insert_entries(new_rows)
        logger.info(f"Inserted {len(new_rows)} knowledge entries, skipped {len(transformed) - len(new_rows)}")

        self.cache.clear()
        if self.revalidator is not None:
            self.revalidator.revalidate(KNOWLEDGE_PATH)
            await self.revalidator.notify(KNOWLEDGE_PATH)

        return {
            "success": True,
            "message": "Data processed successfully",
            "total": len(transformed),
            "added": len(new_rows),
            "skipped": len(transformed) - len(new_rows),
        }
