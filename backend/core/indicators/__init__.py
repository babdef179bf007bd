"""Technical indicators (pure math, no I/O)."""

from core.indicators.indicators import (
    IndicatorSnapshot,
    MacdResult,
    atr,
    compute_snapshot,
    ema,
    macd,
    rsi,
    true_range,
)

__all__ = [
    "ema",
    "macd",
    "rsi",
    "atr",
    "true_range",
    "MacdResult",
    "IndicatorSnapshot",
    "compute_snapshot",
]
