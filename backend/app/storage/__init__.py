"""Data storage layer."""

from app.storage.backends import Storage, create_storage
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

__all__ = [
    "Database",
    "get_database",
    "init_database",
    "Storage",
    "create_storage",
    "PriceHistoryRepository",
    "MarketRepository",
    "SignalRepository",
    "PerformanceRepository",
    "InMemoryPriceHistory",
    "InMemorySignalStore",
    "InMemoryMarketStore",
    "InMemoryPerformanceStore",
]
