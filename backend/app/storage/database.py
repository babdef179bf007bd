"""Database connection and table definitions."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    text,
)
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.config import get_settings

Base = declarative_base()


class MarketTable(Base):
    """Market snapshots (price, 24h change, 24h volume) per refresh."""

    __tablename__ = "markets"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    symbol = Column(String(10), nullable=False)
    price = Column(Float, nullable=False)
    volume = Column(Float, nullable=False)
    change_24h = Column(Float, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))

    __table_args__ = (
        Index("idx_markets_updated_at", "updated_at"),
    )


class SignalTable(Base):
    """Generated trading signals (append-only)."""

    __tablename__ = "signals"

    id = Column(String(32), primary_key=True)
    asset = Column(String(10), nullable=False)
    signal_type = Column(String(10), nullable=False)  # LONG | SHORT
    confidence = Column(Integer, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))

    __table_args__ = (
        Index("idx_signals_asset_created", "asset", "created_at"),
        Index("idx_signals_active", "active"),
    )


class PerformanceTable(Base):
    """Realised PnL per user and signal."""

    __tablename__ = "performance"

    id = Column(String(32), primary_key=True)
    user_id = Column(String(64), nullable=False)
    signal_id = Column(String(32), nullable=False)
    pnl = Column(Float, nullable=False)
    is_open = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))

    __table_args__ = (
        Index("idx_performance_user", "user_id", "created_at"),
    )


class PriceHistoryTable(Base):
    """Price observations per symbol, read ascending by the signal engine."""

    __tablename__ = "price_history"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    symbol = Column(String(10), nullable=False)
    price = Column(Float, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))

    __table_args__ = (
        Index("idx_price_history_symbol_ts", "symbol", "timestamp"),
    )


class Database:
    """Database connection manager."""

    def __init__(self, database_url: str | None = None):
        settings = get_settings()
        url = database_url or settings.database_url

        # Convert postgresql:// to postgresql+asyncpg://
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

        self.engine = create_async_engine(
            url,
            echo=settings.debug,
            pool_size=10,
            max_overflow=10,
            pool_pre_ping=True,    # Validate before use
            pool_recycle=3600,     # Recycle every hour
            pool_timeout=30,
        )
        self.session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def create_tables(self) -> None:
        """Create all tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def close(self) -> None:
        """Close database connection."""
        await self.engine.dispose()


# Global database instance
_db: Database | None = None


def get_database() -> Database:
    """Get the global database instance."""
    global _db
    if _db is None:
        _db = Database()
    return _db


async def init_database() -> Database:
    """Initialize the database and create tables."""
    db = get_database()
    await db.create_tables()
    return db
