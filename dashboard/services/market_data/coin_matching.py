"""
Coin matching helpers.

``match_symbols`` is the strict matcher used by the resolver and the fallback
lookup: exact, case-insensitive ticker match first, then exact display-name
match. ``find_coin_match`` is the forgiving matcher behind the primary-only
lookup route, accepting free-form names such as "Official Trump ($TRUMP)".
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional

logger = logging.getLogger(__name__)

MIN_MATCH_SCORE = 70

# Common names and tickers -> CoinGecko ids
DIRECT_MAPPINGS: Dict[str, str] = {
    # Bitcoin family
    "bitcoin": "bitcoin", "btc": "bitcoin", "bit coin": "bitcoin",
    "bitcoin cash": "bitcoin-cash", "bch": "bitcoin-cash",
    "bitcoin sv": "bitcoin-cash-sv", "bsv": "bitcoin-cash-sv",

    # Ethereum family
    "ethereum": "ethereum", "eth": "ethereum",
    "ethereum classic": "ethereum-classic", "etc": "ethereum-classic",

    # Layer 1s and 2s
    "solana": "solana", "sol": "solana", "cardano": "cardano", "ada": "cardano",
    "polkadot": "polkadot", "dot": "polkadot", "avalanche": "avalanche-2", "avax": "avalanche-2",
    "polygon": "matic-network", "matic": "matic-network", "cosmos": "cosmos", "atom": "cosmos",
    "near protocol": "near", "near": "near", "arbitrum": "arbitrum", "arb": "arbitrum",
    "optimism": "optimism", "op": "optimism", "sui": "sui", "celestia": "celestia", "tia": "celestia",

    # Exchange and DeFi tokens
    "binance": "binancecoin", "bnb": "binancecoin", "ripple": "ripple", "xrp": "ripple",
    "chainlink": "chainlink", "link": "chainlink", "uniswap": "uniswap", "uni": "uniswap",
    "aave": "aave", "maker": "maker", "mkr": "maker", "compound": "compound", "comp": "compound",
    "curve": "curve-dao-token", "crv": "curve-dao-token",

    # Popular altcoins
    "dogecoin": "dogecoin", "doge": "dogecoin", "litecoin": "litecoin", "ltc": "litecoin",
    "tron": "tron", "trx": "tron", "shiba inu": "shiba-inu", "shib": "shiba-inu", "pepe": "pepe",
    "stellar": "stellar", "xlm": "stellar", "monero": "monero", "xmr": "monero",
    "filecoin": "filecoin", "fil": "filecoin", "brett": "brett",

    # Stablecoins
    "tether": "tether", "usdt": "tether", "usd coin": "usd-coin", "usdc": "usd-coin",
    "dai": "dai", "trueusd": "true-usd", "tusd": "true-usd", "frax": "frax",

    # Gaming and metaverse
    "the sandbox": "the-sandbox", "sand": "the-sandbox", "decentraland": "decentraland",
    "mana": "decentraland", "axie infinity": "axie-infinity", "axie": "axie-infinity",
    "gala": "gala", "illuvium": "illuvium", "ilv": "illuvium", "enjin": "enjincoin", "enj": "enjincoin",

    # Others
    "ultra": "ultra", "uos": "ultra", "singularitynet": "singularitynet", "agix": "singularitynet",
    "zklink": "zklink", "zkl": "zklink",
    "official trump": "trump", "trump": "trump", "trump digital trading card": "trump",
    "trump nft": "trump", "trump token": "trump",
}

_SYMBOL_PATTERN = re.compile(r"\(\$([^)]+)\)")
_SYMBOL_STRIP = re.compile(r"\s*\(\$[^)]+\)")
_NON_WORD = re.compile(r"[^a-z0-9\s-]")


def normalize_symbols(symbols: Iterable[Any]) -> List[str]:
    """Lower-case, trim and de-duplicate symbols, keeping first-seen order."""
    seen: Dict[str, None] = {}
    for symbol in symbols:
        if not isinstance(symbol, str):
            continue
        key = symbol.strip().lower()
        if key and key not in seen:
            seen[key] = None
    return list(seen)


def match_symbols(keys: Iterable[str], rows: Iterable[Mapping[str, Any]]) -> Dict[str, Mapping[str, Any]]:
    """Match normalized keys against listing rows.

    Rows are expected in rank order; the highest-ranked row wins when several
    share a ticker or name.
    """
    by_symbol: Dict[str, Mapping[str, Any]] = {}
    by_name: Dict[str, Mapping[str, Any]] = {}
    for row in rows:
        symbol = str(row.get("symbol") or "").lower()
        name = str(row.get("name") or "").lower()
        if symbol:
            by_symbol.setdefault(symbol, row)
        if name:
            by_name.setdefault(name, row)

    matches: Dict[str, Mapping[str, Any]] = {}
    for key in keys:
        row = by_symbol.get(key) or by_name.get(key)
        if row is not None:
            matches[key] = row
    return matches


def _score(coin: Mapping[str, Any], clean_name: str, extracted_symbol: str) -> int:
    coin_symbol = str(coin.get("symbol") or "").lower()
    coin_name = str(coin.get("name") or "").lower()
    coin_id = str(coin.get("id") or "").lower()

    if coin_symbol and coin_symbol in (clean_name, extracted_symbol):
        return 100
    if coin_name == clean_name:
        return 90
    if coin_id == clean_name:
        return 80

    score = 0
    if coin_symbol.startswith(clean_name):
        score += 40
    if coin_symbol and clean_name.startswith(coin_symbol):
        score += 35
    if coin_name.startswith(clean_name):
        score += 30
    if coin_name and clean_name.startswith(coin_name):
        score += 25
    return score


def find_coin_match(search_name: str, market_data: List[Mapping[str, Any]]) -> Optional[Mapping[str, Any]]:
    """Find the listing row that best matches a free-form coin name."""
    normalized = (search_name or "").lower().strip()
    if not normalized:
        return None

    symbol_match = _SYMBOL_PATTERN.search(normalized)
    extracted_symbol = symbol_match.group(1).lower() if symbol_match else ""
    clean_name = _NON_WORD.sub("", _SYMBOL_STRIP.sub("", normalized)).strip()

    # Bitcoin look-alikes are common; always prefer the largest by market cap
    if clean_name in ("bitcoin", "btc") or extracted_symbol == "btc":
        bitcoin_matches = [
            coin for coin in market_data
            if coin.get("id") == "bitcoin"
            or str(coin.get("symbol") or "").lower() == "btc"
            or "bitcoin" in str(coin.get("name") or "").lower()
        ]
        if bitcoin_matches:
            return max(bitcoin_matches, key=lambda coin: coin.get("market_cap") or 0)

    mapped_id = DIRECT_MAPPINGS.get(clean_name) or DIRECT_MAPPINGS.get(extracted_symbol)

    for coin in market_data:
        coin_symbol = str(coin.get("symbol") or "").lower()
        if (
            coin.get("id") == clean_name
            or coin_symbol == clean_name
            or (extracted_symbol and coin_symbol == extracted_symbol)
            or str(coin.get("name") or "").lower() == clean_name
            or (mapped_id and coin.get("id") == mapped_id)
        ):
            return coin

    if not clean_name:
        return None

    best_match: Optional[Mapping[str, Any]] = None
    best_score = 0
    for coin in market_data:
        score = _score(coin, clean_name, extracted_symbol)
        if score >= MIN_MATCH_SCORE and score > best_score:
            best_match, best_score = coin, score

    if best_match is not None:
        logger.debug(f"Fuzzy matched '{search_name}' to {best_match.get('id')} (score {best_score})")
    return best_match
