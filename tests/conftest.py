"""
Shared fixtures: a controllable clock, an in-memory Supabase stand-in and an
application context wired around them.
"""

import re
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import httpx
import pytest
import pytest_asyncio

from dashboard.api.core.app_context import build_app_context
from dashboard.api.core.api_server import create_app
from dashboard.core.http_client import HttpClient
from dashboard.database.core.connection_manager import DatabaseConnectionManager
from dashboard.database.core.database_config import DatabaseConfig
from dashboard.database.core.database_manager import DatabaseManager
from dashboard.services.analysis import AnalysisService, TranscriptService
from dashboard.services.market_data import MarketDataConfig
from dashboard.services.revalidation import PageRevalidator
from dashboard.services.trading import BinanceAccountService

START_TIME = 1_700_000_000.0


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _as_datetime(value):
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _comparable(left, right):
    left_dt, right_dt = _as_datetime(left), _as_datetime(right)
    if left_dt is not None and right_dt is not None:
        return left_dt, right_dt
    return left, right


def _ilike(value, pattern) -> bool:
    regex = "^" + ".*".join(re.escape(part) for part in str(pattern).split("%")) + "$"
    return re.match(regex, str(value or ""), re.IGNORECASE) is not None


def _matches(row, op, column, expected) -> bool:
    value = row.get(column)
    if op == "eq":
        return value == expected
    if op == "neq":
        return value != expected
    if op in ("ilike", "like"):
        return _ilike(value, expected)
    if op == "in_":
        return value in expected
    if value is None:
        return False
    left, right = _comparable(value, expected)
    return {
        "gt": left > right,
        "gte": left >= right,
        "lt": left < right,
        "lte": left <= right,
    }[op]


class FakeQuery:
    """Chainable subset of the postgrest query builder."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.action = "select"
        self.columns = "*"
        self.count = None
        self.payload = None
        self.filters = []
        self.or_filters = []
        self.ordering = None
        self.row_limit = None
        self.row_range = None

    def select(self, columns="*", count=None):
        self.action, self.columns, self.count = "select", columns, count
        return self

    def insert(self, data):
        self.action, self.payload = "insert", data
        return self

    def update(self, data):
        self.action, self.payload = "update", data
        return self

    def _filter(self, op, column, value):
        self.filters.append((op, column, value))
        return self

    def eq(self, column, value):
        return self._filter("eq", column, value)

    def neq(self, column, value):
        return self._filter("neq", column, value)

    def gt(self, column, value):
        return self._filter("gt", column, value)

    def gte(self, column, value):
        return self._filter("gte", column, value)

    def lt(self, column, value):
        return self._filter("lt", column, value)

    def lte(self, column, value):
        return self._filter("lte", column, value)

    def ilike(self, column, value):
        return self._filter("ilike", column, value)

    def like(self, column, value):
        return self._filter("like", column, value)

    def in_(self, column, values):
        return self._filter("in_", column, values)

    def or_(self, expression):
        for clause in expression.split(","):
            column, op, value = clause.split(".", 2)
            self.or_filters.append((op, column, value))
        return self

    def order(self, column, desc=False):
        self.ordering = (column, desc)
        return self

    def limit(self, n):
        self.row_limit = n
        return self

    def range(self, start, end):
        self.row_range = (start, end)
        return self

    def _selected(self, row):
        if self.columns == "*":
            return dict(row)
        names = [name.strip().strip('"') for name in self.columns.split(",")]
        return {name: row.get(name) for name in names}

    def _matching(self):
        rows = self.db.tables.setdefault(self.table_name, [])
        matched = [row for row in rows if all(_matches(row, *f) for f in self.filters)]
        if self.or_filters:
            matched = [row for row in matched if any(_matches(row, *f) for f in self.or_filters)]
        return matched

    def execute(self):
        self.db.queries.append(self)
        if self.db.fail_with is not None:
            raise self.db.fail_with

        rows = self.db.tables.setdefault(self.table_name, [])
        if self.action == "insert":
            new_rows = self.payload if isinstance(self.payload, list) else [self.payload]
            stored = []
            for row in new_rows:
                row = dict(row)
                row.setdefault("id", len(rows) + 1)
                rows.append(row)
                stored.append(row)
            return SimpleNamespace(data=stored, count=None)

        if self.action == "update":
            updated = []
            for row in self._matching():
                row.update(self.payload)
                updated.append(row)
            return SimpleNamespace(data=updated, count=None)

        matched = self._matching()
        if self.ordering:
            column, desc = self.ordering
            matched = sorted(matched, key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
        total = len(matched)
        if self.row_range:
            start, end = self.row_range
            matched = matched[start:end + 1]
        elif self.row_limit:
            matched = matched[:self.row_limit]
        if self.db.max_rows is not None:
            matched = matched[:self.db.max_rows]
        return SimpleNamespace(
            data=[self._selected(row) for row in matched],
            count=total if self.count else None,
        )


class FakeSupabase:
    """In-memory tables behind the ``client.table(...)`` entry point."""

    def __init__(self, tables=None):
        self.tables = {name: [dict(row) for row in rows] for name, rows in (tables or {}).items()}
        self.queries = []
        self.fail_with = None
        # Server-side response cap, like PostgREST max-rows
        self.max_rows = None

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def market_config():
    return MarketDataConfig(cmc_api_key="test-cmc-key")


@pytest.fixture
def db_config():
    return DatabaseConfig(supabase_url="https://example.supabase.co", supabase_key="test-key")


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def db_manager(supabase, db_config):
    return DatabaseManager(
        client=supabase,
        connection_manager=DatabaseConnectionManager(db_config),
        config=db_config,
    )


@pytest.fixture
def binance_client():
    client = Mock()
    client.futures_account = AsyncMock(return_value={
        "assets": [
            {"asset": "USDT", "walletBalance": "150.5", "availableBalance": "100.5", "unrealizedProfit": "2.5"},
        ],
        "canTrade": True,
        "canWithdraw": True,
        "canDeposit": True,
    })
    client.get_account = AsyncMock(return_value={"balances": []})
    client.close_connection = AsyncMock()
    return client


@pytest.fixture
def app_context(clock, market_config, db_manager, binance_client):
    """Context with every upstream replaced by a mock."""
    coingecko = Mock()
    coingecko.lookup = AsyncMock(return_value={})
    coingecko.fetch_raw_listing = AsyncMock(return_value=[])
    coingecko.get_coins_list = AsyncMock(return_value=[])
    coingecko.get_coin_detail = AsyncMock(return_value={})
    coingecko.get_ohlc = AsyncMock(return_value=[])
    coingecko.get_categories = AsyncMock(return_value=[])
    coingecko.page_cache = Mock(get_cache_stats=Mock(return_value={"name": "coingecko-pages"}))
    coingecko.coins_list_cache = Mock(get_cache_stats=Mock(return_value={"name": "coingecko-coins-list"}))

    coinmarketcap = Mock()
    coinmarketcap.is_configured = True
    coinmarketcap.lookup = AsyncMock(return_value={})
    coinmarketcap.test_key = AsyncMock(return_value={"success": True, "total_coins_fetched": 0})

    analysis = AnalysisService(
        client=Mock(post_json=AsyncMock(return_value={"ok": True})),
        batch_url="http://analysis.local/batch",
        single_url="http://analysis.local/single",
        backend_url="http://backend.local",
    )
    transcripts = TranscriptService(
        client=Mock(post_json=AsyncMock(return_value={"transcript": "remote words"})),
        remote_url="http://analysis.local/transcript",
        fetcher=Mock(return_value="local words"),
    )

    return build_app_context(
        clock=clock,
        config=market_config,
        http=HttpClient(session=Mock(closed=False)),
        db_manager=db_manager,
        coingecko=coingecko,
        coinmarketcap=coinmarketcap,
        binance=BinanceAccountService(
            api_key="key", api_secret="secret", testnet=False,
            client_factory=AsyncMock(return_value=binance_client), clock=clock,
        ),
        analysis=analysis,
        transcripts=transcripts,
        revalidator=PageRevalidator(app_url="", clock=clock),
    )


@pytest_asyncio.fixture
async def api_client(app_context):
    app = create_app(context=app_context)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
