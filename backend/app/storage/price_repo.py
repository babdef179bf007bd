"""Price history and market snapshot repositories.

There is no transaction spanning an append and a concurrent ``latest``
read: a reader may observe part of a batch that is still being written.
"""

from datetime import datetime

from sqlalchemy import delete, select

from app.storage.database import Database, MarketTable, PriceHistoryTable, get_database
from core.models import HISTORY_LIMIT, MarketQuote, PricePoint


class PriceHistoryRepository:
    """Append-only price observations per symbol."""

    def __init__(self, db: Database | None = None):
        self._db = db

    @property
    def db(self) -> Database:
        return self._db or get_database()

    async def append(self, points: list[PricePoint]) -> None:
        """Insert a batch of price observations."""
        if not points:
            return
        async with self.db.session() as session:
            session.add_all(
                PriceHistoryTable(symbol=p.symbol, price=p.price, timestamp=p.timestamp)
                for p in points
            )

    async def latest(self, symbol: str, count: int = HISTORY_LIMIT) -> list[PricePoint]:
        """Get up to `count` most recent points, ordered by ascending timestamp."""
        async with self.db.session() as session:
            stmt = (
                select(PriceHistoryTable)
                .where(PriceHistoryTable.symbol == symbol)
                .order_by(PriceHistoryTable.timestamp.desc(), PriceHistoryTable.id.desc())
                .limit(count)
            )
            result = await session.execute(stmt)
            rows = result.scalars().all()

        return [
            PricePoint(symbol=row.symbol, price=row.price, timestamp=row.timestamp)
            for row in reversed(rows)
        ]

    async def prune(self, symbol: str, keep: int = HISTORY_LIMIT) -> int:
        """Delete all but the `keep` most recent points of a symbol.

        Returns:
            Number of rows deleted
        """
        async with self.db.session() as session:
            newest = (
                select(PriceHistoryTable.id)
                .where(PriceHistoryTable.symbol == symbol)
                .order_by(PriceHistoryTable.timestamp.desc(), PriceHistoryTable.id.desc())
                .limit(keep)
            )
            stmt = delete(PriceHistoryTable).where(
                PriceHistoryTable.symbol == symbol,
                PriceHistoryTable.id.not_in(newest),
            )
            result = await session.execute(stmt)
            return result.rowcount or 0


class MarketRepository:
    """Market snapshots written on every refresh."""

    def __init__(self, db: Database | None = None):
        self._db = db

    @property
    def db(self) -> Database:
        return self._db or get_database()

    async def insert(self, quote: MarketQuote, timestamp: datetime) -> None:
        """Save a market snapshot."""
        async with self.db.session() as session:
            session.add(
                MarketTable(
                    symbol=quote.symbol,
                    price=quote.price,
                    volume=quote.volume,
                    change_24h=quote.change_24h,
                    updated_at=timestamp,
                )
            )

    async def get_latest(self, limit: int = 50) -> list[dict]:
        """Get the most recent snapshots, newest first."""
        async with self.db.session() as session:
            stmt = select(MarketTable).order_by(MarketTable.updated_at.desc()).limit(limit)
            result = await session.execute(stmt)
            return [
                {
                    "symbol": row.symbol,
                    "price": row.price,
                    "change24h": row.change_24h,
                    "volume": row.volume,
                    "updatedAt": row.updated_at.isoformat(),
                }
                for row in result.scalars().all()
            ]
