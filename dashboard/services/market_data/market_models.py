import time
from dataclasses import dataclass, field, asdict
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

Clock = Callable[[], float]

SOURCE_PRIMARY = "primary"
SOURCE_FALLBACK = "fallback"

T = TypeVar("T")


@dataclass(frozen=True)
class CoinRecord:
    """Market snapshot of one coin, tagged with the provider it came from"""
    id: str
    symbol: str
    name: str
    source: str
    price: float = 0.0
    market_cap: float = 0.0
    volume_24h: float = 0.0
    percent_change_1h: Optional[float] = None
    percent_change_24h: Optional[float] = None
    percent_change_7d: Optional[float] = None
    circulating_supply: Optional[float] = None
    total_supply: Optional[float] = None
    max_supply: Optional[float] = None
    image: str = ""
    coingecko_id: Optional[str] = None
    cmc_id: Optional[int] = None
    rank: Optional[int] = None
    market_cap_dominance: Optional[float] = None
    fully_diluted_market_cap: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


@dataclass
class CacheEntry(Generic[T]):
    """Cached payload with its capture time"""
    data: T
    timestamp: float

    def age(self, now: float) -> float:
        return now - self.timestamp

    def is_fresh(self, now: float, duration: float) -> bool:
        return self.age(now) < duration


@dataclass
class QuotaCounter:
    """Calls made to a metered provider since the window started.

    The window is approximated as "since last reset"; it resets once
    ``window_seconds`` have elapsed. ``count`` never exceeds ``ceiling``.
    """
    ceiling: int
    window_seconds: float = 30 * 24 * 60 * 60
    clock: Clock = time.time
    count: int = 0
    window_start: float = field(default=-1.0)

    def __post_init__(self):
        if self.window_start < 0:
            self.window_start = self.clock()

    def reset_if_needed(self) -> None:
        now = self.clock()
        if now - self.window_start >= self.window_seconds:
            self.count = 0
            self.window_start = now

    def remaining(self) -> int:
        self.reset_if_needed()
        return max(self.ceiling - self.count, 0)

    def is_exhausted(self) -> bool:
        return self.remaining() == 0

    def record_call(self) -> bool:
        """Count one call; refuses (returns False) at the ceiling."""
        if self.is_exhausted():
            return False
        self.count += 1
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "used": self.count,
            "limit": self.ceiling,
            "remaining": self.remaining(),
            "windowStart": int(self.window_start * 1000),
        }


class RateWindow:
    """Last dispatch time per key, enforcing a minimum gap between dispatches"""

    def __init__(self, min_interval: float, clock: Clock = time.time):
        self.min_interval = min_interval
        self.clock = clock
        self._last_dispatch: Dict[str, float] = {}

    def seconds_until_allowed(self, key: str, interval: Optional[float] = None) -> float:
        last = self._last_dispatch.get(key)
        if last is None:
            return 0.0
        gap = self.min_interval if interval is None else interval
        return max(gap - (self.clock() - last), 0.0)

    def is_limited(self, key: str, interval: Optional[float] = None) -> bool:
        return self.seconds_until_allowed(key, interval) > 0

    def mark(self, key: str) -> None:
        self._last_dispatch[key] = self.clock()

    def clear(self) -> None:
        self._last_dispatch.clear()


@dataclass
class ResolveResult:
    """Outcome of a symbol lookup, serialised as the route's JSON body"""
    data: Dict[str, Dict[str, Any]]
    timestamp: float
    from_cache: bool
    stale: bool = False
    error: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "data": self.data,
            "timestamp": int(self.timestamp * 1000),
            "fromCache": self.from_cache,
        }
        if self.stale:
            body["stale"] = True
        if self.error:
            body["error"] = self.error
        body.update(self.extra)
        return body
