"""Signal engine configuration models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class StrategyName(str, Enum):
    """Available signal strategies."""

    MULTI_INDICATOR = "multi_indicator"
    PERCENT_CHANGE = "percent_change"


# Retention window for price history per symbol. EMA200 needs 200 bars;
# 256 leaves margin without storing unnecessary history.
HISTORY_LIMIT = 256


class SignalEngineConfig(BaseModel):
    """Signal engine parameters."""

    strategy: StrategyName = StrategyName.MULTI_INDICATOR

    # History requirements
    history_window: int = Field(default=HISTORY_LIMIT, ge=1)
    min_history: int = Field(default=210, ge=2)

    # Indicator periods
    ema_fast_period: int = 50
    ema_slow_period: int = 200
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    rsi_length: int = 14

    # RSI regime bounds
    rsi_oversold: float = 30.0
    rsi_overbought: float = 70.0

    # Confidence scoring
    base_confidence: int = 60
    bonus: int = 10
    ema_gap_threshold: float = 0.005  # 0.5% relative gap between EMAs

    # Percent-change strategy
    change_threshold_pct: float = 1.0
    change_confidence_mult: float = 10.0
