"""Storage backend selection."""

import logging
from dataclasses import dataclass, field
from typing import Any

from app.config import Settings
from app.storage.database import Database, get_database, init_database
from app.storage.memory import (
    InMemoryMarketStore,
    InMemoryPerformanceStore,
    InMemoryPriceHistory,
    InMemorySignalStore,
)
from app.storage.performance_repo import PerformanceRepository
from app.storage.price_repo import MarketRepository, PriceHistoryRepository
from app.storage.signal_repo import SignalRepository

logger = logging.getLogger(__name__)


@dataclass
class Storage:
    """Price history, signal, market and PnL stores of one backend."""

    prices: Any
    signals: Any
    markets: Any
    performance: Any = field(default_factory=InMemoryPerformanceStore)
    database: Database | None = None

    async def close(self) -> None:
        if self.database is not None:
            await self.database.close()
            logger.info("Database connections closed")


async def create_storage(settings: Settings) -> Storage:
    """Build the configured backend, creating tables for PostgreSQL."""
    if settings.storage_backend == "memory":
        logger.info("Using in-memory storage")
        return Storage(
            prices=InMemoryPriceHistory(limit=settings.history_window),
            signals=InMemorySignalStore(),
            markets=InMemoryMarketStore(),
            performance=InMemoryPerformanceStore(),
        )

    await init_database()
    db = get_database()
    logger.info("Database initialized")
    return Storage(
        prices=PriceHistoryRepository(db),
        signals=SignalRepository(db),
        markets=MarketRepository(db),
        performance=PerformanceRepository(db),
        database=db,
    )
