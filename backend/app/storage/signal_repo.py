"""Signal data repository."""

from sqlalchemy import func, select

from app.storage.database import Database, SignalTable, get_database
from core.models import Direction, Signal


class SignalRepository:
    """Repository for signal data operations."""

    def __init__(self, db: Database | None = None):
        self._db = db

    @property
    def db(self) -> Database:
        return self._db or get_database()

    async def insert(self, signal: Signal) -> None:
        """Save a new signal record."""
        async with self.db.session() as session:
            session.add(
                SignalTable(
                    id=signal.id,
                    asset=signal.asset,
                    signal_type=signal.direction.value,
                    confidence=signal.confidence,
                    active=signal.active,
                    created_at=signal.created_at,
                )
            )

    async def get_recent(self, limit: int = 100, asset: str | None = None) -> list[Signal]:
        """Get recent signals, newest first."""
        async with self.db.session() as session:
            stmt = select(SignalTable)
            if asset:
                stmt = stmt.where(SignalTable.asset == asset)
            stmt = stmt.order_by(SignalTable.created_at.desc()).limit(limit)

            result = await session.execute(stmt)
            return [self._row_to_signal(row) for row in result.scalars().all()]

    async def get_active(self, asset: str | None = None) -> list[Signal]:
        """Get active signals, newest first."""
        async with self.db.session() as session:
            stmt = select(SignalTable).where(SignalTable.active.is_(True))
            if asset:
                stmt = stmt.where(SignalTable.asset == asset)
            stmt = stmt.order_by(SignalTable.created_at.desc())

            result = await session.execute(stmt)
            return [self._row_to_signal(row) for row in result.scalars().all()]

    async def get_stats(self) -> dict:
        """Get signal counts.

        Returns:
            Dict with total_signals and active_signals
        """
        async with self.db.session() as session:
            total = await session.scalar(select(func.count()).select_from(SignalTable))
            active = await session.scalar(
                select(func.count())
                .select_from(SignalTable)
                .where(SignalTable.active.is_(True))
            )
            return {"total_signals": total or 0, "active_signals": active or 0}

    @staticmethod
    def _row_to_signal(row: SignalTable) -> Signal:
        return Signal(
            id=row.id,
            asset=row.asset,
            direction=Direction(row.signal_type),
            confidence=row.confidence,
            active=row.active,
            created_at=row.created_at,
        )
