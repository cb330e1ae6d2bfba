"""
Tests for symbol normalisation and listing matchers.
"""

from dashboard.services.market_data import find_coin_match, match_symbols, normalize_symbols

LISTING = [
    {"id": "bitcoin", "symbol": "btc", "name": "Bitcoin", "market_cap": 1_000_000},
    {"id": "wrapped-bitcoin", "symbol": "wbtc", "name": "Wrapped Bitcoin", "market_cap": 10_000},
    {"id": "ethereum", "symbol": "eth", "name": "Ethereum", "market_cap": 500_000},
    {"id": "fake-eth", "symbol": "eth", "name": "Fake Ether", "market_cap": 5},
    {"id": "chainlink", "symbol": "link", "name": "Chainlink", "market_cap": 9_000},
]


class TestNormalizeSymbols:
    """Test normalize_symbols."""

    def test_lowercases_trims_and_dedupes(self):
        assert normalize_symbols([" BTC", "btc", "Eth ", "", "  "]) == ["btc", "eth"]

    def test_skips_non_strings(self):
        assert normalize_symbols(["btc", 42, None]) == ["btc"]


class TestMatchSymbols:
    """Test the strict ticker/name matcher."""

    def test_ticker_then_name(self):
        matches = match_symbols(["btc", "chainlink", "ghost"], LISTING)

        assert matches["btc"]["id"] == "bitcoin"
        assert matches["chainlink"]["id"] == "chainlink"
        assert "ghost" not in matches

    def test_highest_ranked_row_wins_duplicate_ticker(self):
        matches = match_symbols(["eth"], LISTING)

        assert matches["eth"]["id"] == "ethereum"


class TestFindCoinMatch:
    """Test the forgiving name matcher."""

    def test_bitcoin_prefers_largest_market_cap(self):
        reordered = list(reversed(LISTING))

        assert find_coin_match("Bitcoin", reordered)["id"] == "bitcoin"

    def test_direct_mapping(self):
        assert find_coin_match("Ethereum", LISTING)["id"] == "ethereum"

    def test_symbol_in_parentheses(self):
        assert find_coin_match("Chain Link ($LINK)", LISTING)["id"] == "chainlink"

    def test_fuzzy_prefix(self):
        listing = LISTING + [{"id": "aixbt-token", "symbol": "aixbt", "name": "aixbt by Virtuals"}]

        assert find_coin_match("aix", listing)["id"] == "aixbt-token"

    def test_fuzzy_score_below_threshold(self):
        assert find_coin_match("chainlink network", LISTING) is None

    def test_no_match(self):
        assert find_coin_match("completely unknown", LISTING) is None
        assert find_coin_match("", LISTING) is None
