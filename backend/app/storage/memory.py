"""In-memory storage backends.

Same interface as the SQLAlchemy repositories, used when
``storage_backend="memory"`` and in tests. Price history keeps a bounded
window per symbol, so retention is enforced on append.
"""

from collections import deque
from datetime import datetime

from core.models import HISTORY_LIMIT, MarketQuote, PerformanceRecord, PricePoint, Signal
from core.models.performance import summarize


class InMemoryPriceHistory:
    """Bounded, ascending price history per symbol."""

    def __init__(self, limit: int = HISTORY_LIMIT):
        self.limit = limit
        self._points: dict[str, deque[PricePoint]] = {}

    async def append(self, points: list[PricePoint]) -> None:
        for point in points:
            series = self._points.setdefault(point.symbol, deque(maxlen=self.limit))
            if series and point.timestamp < series[-1].timestamp:
                # Out-of-order point: keep the window sorted by timestamp
                ordered = sorted([*series, point], key=lambda p: p.timestamp)
                series.clear()
                series.extend(ordered[-self.limit:])
            else:
                series.append(point)

    async def latest(self, symbol: str, count: int = HISTORY_LIMIT) -> list[PricePoint]:
        series = self._points.get(symbol)
        if not series or count <= 0:
            return []
        return list(series)[-count:]

    async def prune(self, symbol: str, keep: int = HISTORY_LIMIT) -> int:
        series = self._points.get(symbol)
        if not series or len(series) <= keep:
            return 0
        removed = len(series) - keep
        for _ in range(removed):
            series.popleft()
        return removed

    def __len__(self) -> int:
        return sum(len(s) for s in self._points.values())


class InMemorySignalStore:
    """Append-only signal list."""

    def __init__(self):
        self._signals: list[Signal] = []

    async def insert(self, signal: Signal) -> None:
        self._signals.append(signal)

    async def get_recent(self, limit: int = 100, asset: str | None = None) -> list[Signal]:
        signals = [s for s in self._signals if asset is None or s.asset == asset]
        signals.sort(key=lambda s: s.created_at, reverse=True)
        return signals[:limit]

    async def get_active(self, asset: str | None = None) -> list[Signal]:
        signals = await self.get_recent(len(self._signals), asset)
        return [s for s in signals if s.active]

    async def get_stats(self) -> dict:
        return {
            "total_signals": len(self._signals),
            "active_signals": sum(1 for s in self._signals if s.active),
        }

    def __len__(self) -> int:
        return len(self._signals)


class InMemoryMarketStore:
    """Most recent market snapshots."""

    def __init__(self, max_size: int = 500):
        self._snapshots: deque[dict] = deque(maxlen=max_size)

    async def insert(self, quote: MarketQuote, timestamp: datetime) -> None:
        self._snapshots.append(
            {
                "symbol": quote.symbol,
                "price": quote.price,
                "change24h": quote.change_24h,
                "volume": quote.volume,
                "updatedAt": timestamp.isoformat(),
            }
        )

    async def get_latest(self, limit: int = 50) -> list[dict]:
        return list(reversed(self._snapshots))[:limit]


class InMemoryPerformanceStore:
    """PnL ledger kept in a list."""

    def __init__(self):
        self._records: list[PerformanceRecord] = []

    async def record(self, record: PerformanceRecord) -> None:
        self._records.append(record)

    async def get_for_user(self, user_id: str) -> list[PerformanceRecord]:
        records = [r for r in self._records if r.user_id == user_id]
        records.sort(key=lambda r: r.created_at, reverse=True)
        return records

    async def get_overall(self) -> float:
        return float(sum(r.pnl for r in self._records))

    async def get_summary(self) -> dict:
        return summarize(self._records)
