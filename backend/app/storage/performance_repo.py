"""Performance (PnL) repository."""

from sqlalchemy import func, select

from app.storage.database import Database, PerformanceTable, get_database
from core.models import PerformanceRecord


class PerformanceRepository:
    """Repository for the PnL ledger."""

    def __init__(self, db: Database | None = None):
        self._db = db

    @property
    def db(self) -> Database:
        return self._db or get_database()

    async def record(self, record: PerformanceRecord) -> None:
        async with self.db.session() as session:
            session.add(
                PerformanceTable(
                    id=record.id,
                    user_id=record.user_id,
                    signal_id=record.signal_id,
                    pnl=record.pnl,
                    is_open=record.is_open,
                    created_at=record.created_at,
                )
            )

    async def get_for_user(self, user_id: str) -> list[PerformanceRecord]:
        """Get a user's records, newest first."""
        async with self.db.session() as session:
            stmt = (
                select(PerformanceTable)
                .where(PerformanceTable.user_id == user_id)
                .order_by(PerformanceTable.created_at.desc())
            )
            result = await session.execute(stmt)
            return [self._row_to_record(row) for row in result.scalars().all()]

    async def get_overall(self) -> float:
        """Sum of PnL across all users."""
        async with self.db.session() as session:
            total = await session.scalar(select(func.sum(PerformanceTable.pnl)))
            return float(total or 0.0)

    async def get_summary(self) -> dict:
        """Get ledger totals.

        Returns:
            Dict with total_pnl, total_records and open_positions
        """
        async with self.db.session() as session:
            total_pnl = await session.scalar(select(func.sum(PerformanceTable.pnl)))
            total = await session.scalar(select(func.count()).select_from(PerformanceTable))
            open_count = await session.scalar(
                select(func.count())
                .select_from(PerformanceTable)
                .where(PerformanceTable.is_open.is_(True))
            )
            return {
                "total_pnl": float(total_pnl or 0.0),
                "total_records": total or 0,
                "open_positions": open_count or 0,
            }

    @staticmethod
    def _row_to_record(row: PerformanceTable) -> PerformanceRecord:
        return PerformanceRecord(
            id=row.id,
            user_id=row.user_id,
            signal_id=row.signal_id,
            pnl=row.pnl,
            is_open=row.is_open,
            created_at=row.created_at,
        )
