"""Percent-change strategy.

Compares the latest price to the previous one. A move of at least
``change_threshold_pct`` percent produces a signal in the direction of the
move, with confidence ``min(|change| * change_confidence_mult, 100)``.
"""

from __future__ import annotations

from typing import Sequence

from core.models.config import SignalEngineConfig, StrategyName
from core.models.signal import Direction
from core.strategy.multi_indicator import clamp_confidence
from core.strategy.protocol import (
    SKIP_BELOW_THRESHOLD,
    SKIP_INSUFFICIENT_HISTORY,
    SKIP_INVALID_PREVIOUS_PRICE,
    StrategyDecision,
)
from core.strategy.registry import register_strategy


@register_strategy(StrategyName.PERCENT_CHANGE)
class PercentChangeStrategy:
    """Threshold on the last price change."""

    def __init__(self, config: SignalEngineConfig | None = None):
        self.config = config or SignalEngineConfig()

    @property
    def name(self) -> str:
        return StrategyName.PERCENT_CHANGE.value

    @property
    def min_history(self) -> int:
        return 2

    def decide(self, closes: Sequence[float]) -> StrategyDecision:
        if len(closes) < self.min_history:
            return StrategyDecision.skip(SKIP_INSUFFICIENT_HISTORY, points=len(closes))
        if closes[-2] <= 0:
            return StrategyDecision.skip(SKIP_INVALID_PREVIOUS_PRICE, previous=closes[-2])

        latest = closes[-1]
        previous = closes[-2]
        change = (latest - previous) / previous * 100

        if abs(change) < self.config.change_threshold_pct:
            return StrategyDecision.skip(SKIP_BELOW_THRESHOLD, change_pct=change)

        return StrategyDecision(
            direction=Direction.LONG if change > 0 else Direction.SHORT,
            confidence=clamp_confidence(abs(change) * self.config.change_confidence_mult),
            metadata={"change_pct": change},
        )
