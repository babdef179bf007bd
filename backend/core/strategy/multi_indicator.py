"""Multi-indicator strategy: EMA trend + MACD momentum + RSI regime.

Strategy Logic:
- Trend: bullish when EMA50 > EMA200
- Momentum: bullish when the latest MACD histogram > 0
- LONG when trend and momentum are both bullish, SHORT when both are
  bearish, no signal when they disagree

Confidence (clamped to [0, 100]):
- base 60
- +10 when the MACD histogram is non-zero
- +10 when |EMA50 - EMA200| / EMA200 > 0.5%
- +10 when the RSI regime agrees with the direction
  (RSI < 30 bullish, RSI > 70 bearish, otherwise follows the trend)
"""

from __future__ import annotations

import logging
from typing import Sequence

from core.indicators import IndicatorSnapshot, compute_snapshot
from core.models.config import SignalEngineConfig, StrategyName
from core.models.signal import Direction
from core.strategy.protocol import (
    SKIP_CONFLICT,
    SKIP_INDICATORS_UNAVAILABLE,
    SKIP_INSUFFICIENT_HISTORY,
    StrategyDecision,
)
from core.strategy.registry import register_strategy

logger = logging.getLogger(__name__)


def clamp_confidence(value: float) -> int:
    """Clamp a raw score into the [0, 100] confidence range."""
    return int(max(0, min(100, round(value))))


@register_strategy(StrategyName.MULTI_INDICATOR)
class MultiIndicatorStrategy:
    """Combine trend, momentum and RSI regime into a directional call."""

    def __init__(self, config: SignalEngineConfig | None = None):
        self.config = config or SignalEngineConfig()

    @property
    def name(self) -> str:
        return StrategyName.MULTI_INDICATOR.value

    @property
    def min_history(self) -> int:
        return self.config.min_history

    def rsi_regime(self, rsi_value: float, trend: Direction) -> Direction:
        """Oversold reads bullish, overbought bearish, neutral follows trend."""
        if rsi_value < self.config.rsi_oversold:
            return Direction.LONG
        if rsi_value > self.config.rsi_overbought:
            return Direction.SHORT
        return trend

    def score(self, snapshot: IndicatorSnapshot) -> StrategyDecision:
        """Decide direction and confidence from the latest indicator values."""
        if not snapshot.is_complete:
            return StrategyDecision.skip(SKIP_INDICATORS_UNAVAILABLE)

        ema_fast = snapshot.latest_ema_fast
        ema_slow = snapshot.latest_ema_slow
        histogram = snapshot.latest_histogram
        rsi_value = snapshot.latest_rsi

        trend = Direction.LONG if ema_fast > ema_slow else Direction.SHORT
        momentum = Direction.LONG if histogram > 0 else Direction.SHORT

        metadata = {
            "ema_fast": ema_fast,
            "ema_slow": ema_slow,
            "macd_histogram": histogram,
            "rsi": rsi_value,
        }

        if trend != momentum:
            return StrategyDecision.skip(SKIP_CONFLICT, **metadata)

        direction = trend
        confidence = self.config.base_confidence

        if abs(histogram) > 0:
            confidence += self.config.bonus

        if ema_slow != 0 and abs(ema_fast - ema_slow) / abs(ema_slow) > self.config.ema_gap_threshold:
            confidence += self.config.bonus

        if self.rsi_regime(rsi_value, trend) == direction:
            confidence += self.config.bonus

        return StrategyDecision(
            direction=direction,
            confidence=clamp_confidence(confidence),
            metadata=metadata,
        )

    def decide(self, closes: Sequence[float]) -> StrategyDecision:
        if len(closes) < self.min_history:
            return StrategyDecision.skip(
                SKIP_INSUFFICIENT_HISTORY, points=len(closes), required=self.min_history
            )
        return self.score(compute_snapshot(closes, self.config))
