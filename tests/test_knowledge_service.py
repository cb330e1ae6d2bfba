"""
Tests for knowledge-base validation, idempotent inserts and analytics.
"""

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock

from dashboard.core.errors import DatabaseError, RequestValidationFailed
from dashboard.database.repositories import KnowledgeRepository
from dashboard.services.knowledge import (
    KnowledgeService, build_knowledge_analytics, normalize_knowledge_row, normalize_payload, transform_for_insert,
    validate_items,
)
from dashboard.services.revalidation import PageRevalidator


def knowledge_item(link="https://youtu.be/abcdefghijk", **overrides):
    item = {
        "id": 1,
        "date": "2023-11-14T10:00:00+00:00",
        "video_title": "Top picks this week",
        "channel name": "Crypto Daily",
        "model": "gpt-4o",
        "link": link,
        "answer": "Bullish on majors",
        "llm_answer": [{
            "projects": [{
                "coin_or_project": "Bitcoin",
                "Marketcap": "Large",
                "Rpoints": 8,
                "Total count": 3,
                "category": ["layer-1"],
            }],
            "total_count": 3,
            "total_Rpoints": 8,
        }],
    }
    item.update(overrides)
    return item


class TestPayloadValidation:
    """Test payload normalisation and validation."""

    def test_every_missing_field_is_reported(self):
        with pytest.raises(RequestValidationFailed) as exc_info:
            validate_items([{"id": 1}, {}])

        violations = exc_info.value.violations
        assert len(violations) == 9
        assert "Missing required field: channel name" in violations
        assert violations.count("Missing required field: id") == 1
        assert exc_info.value.status_code == 400

    def test_numeric_keyed_object_becomes_list(self):
        items = normalize_payload({"0": {"a": 1}, "1": {"a": 2}})

        assert items == [{"a": 1}, {"a": 2}]

    def test_single_object_is_wrapped(self):
        assert normalize_payload({"id": 1}) == [{"id": 1}]

    def test_empty_batch(self):
        with pytest.raises(RequestValidationFailed) as exc_info:
            normalize_payload([])

        assert exc_info.value.message == "Empty data"

    def test_non_object_payload(self):
        with pytest.raises(RequestValidationFailed) as exc_info:
            normalize_payload("hello")

        assert exc_info.value.message == "Invalid data format"


class TestTransforms:
    """Test row shaping in both directions."""

    def test_transform_for_insert_flattens_first_answer(self):
        now = datetime(2023, 11, 14, 12, 0, tzinfo=timezone.utc)
        row = transform_for_insert(knowledge_item(**{"channel name": None, "channel_name": "Alt Channel"}), now=now)

        assert row["channel name"] == "Alt Channel"
        assert row["summary"] == "Bullish on majors"
        assert row["created_at"] == now.isoformat()
        assert row["video_type"] == "video"
        assert row["llm_answer"]["total_rpoints"] == 8
        assert row["llm_answer"]["projects"][0] == {
            "coin_or_project": "Bitcoin",
            "marketcap": "large",
            "rpoints": 8,
            "total_count": 3,
            "category": ["layer-1"],
            "coin": None,
        }

    def test_normalize_row_defaults(self):
        row = normalize_knowledge_row({"id": 5, "llm_answer": None})

        assert row["link"] == ""
        assert row["summary"] == ""
        assert row["video_type"] == "video"
        assert row["llm_answer"] == {"projects": [], "total_count": 0, "total_rpoints": 0}


class TestKnowledgeService:
    """Test KnowledgeService against the in-memory database."""

    @pytest.fixture
    def revalidator(self):
        revalidator = Mock(spec=PageRevalidator)
        revalidator.notify = AsyncMock(return_value=True)
        return revalidator

    @pytest.fixture
    def service(self, db_manager, revalidator, clock):
        return KnowledgeService(KnowledgeRepository(db_manager), revalidator, clock=clock)

    @pytest.mark.asyncio
    async def test_insert_then_reinsert_is_idempotent(self, service, supabase, revalidator):
        first = await service.insert([knowledge_item()])
        second = await service.insert([knowledge_item()])

        assert first == {
            "success": True,
            "message": "Data processed successfully",
            "total": 1,
            "added": 1,
            "skipped": 0,
        }
        assert second == {"success": True, "message": "No new data to update", "skipped": 1, "dataSize": 0}
        assert len(supabase.tables["knowledge"]) == 1
        revalidator.revalidate.assert_called_once_with("/knowledge")
        revalidator.notify.assert_awaited_once_with("/knowledge")

    @pytest.mark.asyncio
    async def test_reinsert_idempotent_beyond_row_cap(self, service, supabase):
        supabase.tables["knowledge"] = [
            {"id": n, "link": f"https://youtu.be/video{n:06d}"} for n in range(1, 6)
        ]
        supabase.max_rows = 3

        result = await service.insert([knowledge_item(link="https://youtu.be/video000005")])

        assert result["skipped"] == 1
        assert len(supabase.tables["knowledge"]) == 5
        lookup = [q for q in supabase.queries if q.action == "select"][0]
        assert lookup.filters == [("in_", "link", ["https://youtu.be/video000005"])]

    @pytest.mark.asyncio
    async def test_duplicate_links_within_batch(self, service, supabase):
        result = await service.insert([knowledge_item(), knowledge_item(), knowledge_item(link="")])

        assert result["added"] == 2
        assert result["skipped"] == 1
        assert len(supabase.tables["knowledge"]) == 2

    @pytest.mark.asyncio
    async def test_invalid_batch_inserts_nothing(self, service, supabase):
        with pytest.raises(RequestValidationFailed):
            await service.insert([knowledge_item(), {"id": 2}])

        assert supabase.tables.get("knowledge", []) == []

    @pytest.mark.asyncio
    async def test_list_normalises_and_filters_by_days(self, service, supabase):
        supabase.tables["knowledge"] = [
            {"id": 1, "date": "2023-11-14T00:00:00+00:00", "channel name": "A", "model": "m"},
            {"id": 2, "date": "2023-10-01T00:00:00+00:00", "channel name": "B", "model": "m"},
        ]

        recent = await service.list(days=7)
        everything = await service.list()

        assert [item["id"] for item in recent] == [1]
        assert [item["id"] for item in everything] == [1, 2]
        assert recent[0]["video_type"] == "video"

    @pytest.mark.asyncio
    async def test_insert_clears_list_cache(self, service):
        assert await service.list() == []

        await service.insert([knowledge_item()])
        items = await service.list()

        assert len(items) == 1
        assert items[0]["llm_answer"]["projects"][0]["rpoints"] == 8

    @pytest.mark.asyncio
    async def test_channels_are_distinct_and_sorted(self, service, supabase):
        supabase.tables["knowledge"] = [
            {"id": 1, "channel name": "zeta"},
            {"id": 2, "channel name": "Alpha"},
            {"id": 3, "channel name": "zeta"},
            {"id": 4, "channel name": ""},
        ]

        assert await service.channels() == ["Alpha", "zeta"]

    @pytest.mark.asyncio
    async def test_database_failure_propagates(self, service, supabase):
        supabase.fail_with = RuntimeError("connection refused")

        with pytest.raises(DatabaseError):
            await service.insert([knowledge_item()])


class TestKnowledgeAnalytics:
    """Test build_knowledge_analytics aggregation."""

    @pytest.fixture
    def items(self):
        def item(channel, model, date, projects):
            return {"channel name": channel, "model": model, "date": date, "llm_answer": {"projects": projects}}

        return [
            item("Alpha", "gpt", "2023-11-13T08:00:00Z", [
                {"coin_or_project": "Bitcoin", "rpoints": 5, "category": ["layer-1"]},
                {"coin_or_project": "Pepe", "rpoints": 2.5, "category": ["meme"]},
            ]),
            item("beta", "claude", "2023-11-14T08:00:00Z", [
                {"coin_or_project": "bitcoin", "rpoints": 3, "category": ["layer-1"]},
                {"coin_or_project": "Ignored", "rpoints": 0},
            ]),
        ]

    def test_project_distribution_and_trends(self, items):
        result = build_knowledge_analytics(items)

        assert result["projectDistribution"] == [
            {"name": "bitcoin", "value": 8},
            {"name": "pepe", "value": 2.5},
        ]
        assert result["projectTrends"]["bitcoin"] == [
            {"date": "2023-11-13", "rpoints": 5},
            {"date": "2023-11-14", "rpoints": 3},
        ]
        assert result["categoryDistribution"][0] == {"name": "layer-1", "value": 2}
        assert result["uniqueCoins"] == 2

    def test_filters_apply_to_aggregates_only(self, items):
        result = build_knowledge_analytics(items, channels=["beta"])

        assert result["projectDistribution"] == [{"name": "bitcoin", "value": 3}]
        assert result["channels"] == ["Alpha", "beta"]
        assert result["models"] == ["claude", "gpt"]

    def test_coin_categories_rows(self, items):
        result = build_knowledge_analytics(items)
        bitcoin_rows = [row for row in result["coinCategories"] if row["coin"] == "bitcoin"]

        assert len(bitcoin_rows) == 2
        assert bitcoin_rows[0]["categories"] == ["layer-1"]
        assert bitcoin_rows[0]["total_count"] == 2
