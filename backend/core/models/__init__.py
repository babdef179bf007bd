"""Data models."""

from core.models.config import HISTORY_LIMIT, SignalEngineConfig, StrategyName
from core.models.market import FundingRate, MarketQuote, PricePoint
from core.models.performance import PerformanceRecord
from core.models.signal import Direction, Signal

__all__ = [
    "HISTORY_LIMIT",
    "SignalEngineConfig",
    "StrategyName",
    "FundingRate",
    "MarketQuote",
    "PricePoint",
    "PerformanceRecord",
    "Direction",
    "Signal",
]
