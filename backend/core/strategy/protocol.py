"""Strategy protocol defining the interface signal strategies implement.

This module provides:
- StrategyDecision: Standard return type from a strategy evaluation
- SignalStrategy: Runtime-checkable Protocol that strategies must satisfy
- Skip reasons shared by strategies and the signal engine
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Sequence, runtime_checkable

from core.models.signal import Direction


# ---------------------------------------------------------------------------
# Skip reasons (expected, non-fatal outcomes)
# ---------------------------------------------------------------------------
SKIP_INSUFFICIENT_HISTORY = "insufficient_history"
SKIP_INDICATORS_UNAVAILABLE = "indicators_unavailable"
SKIP_CONFLICT = "trend_momentum_conflict"
SKIP_BELOW_THRESHOLD = "below_threshold"
SKIP_INVALID_PREVIOUS_PRICE = "invalid_previous_price"


@dataclass
class StrategyDecision:
    """Result of evaluating one symbol.

    Attributes:
        direction: Direction of the call, or None when no signal is produced.
        confidence: Confidence score in [0, 100] (0 when skipped).
        skip_reason: Why no signal was produced, if any.
        metadata: Strategy-specific data (e.g., latest indicator values).
    """

    direction: Direction | None = None
    confidence: int = 0
    skip_reason: str | None = None
    metadata: dict = field(default_factory=dict)

    @property
    def is_signal(self) -> bool:
        return self.direction is not None

    @classmethod
    def skip(cls, reason: str, **metadata) -> "StrategyDecision":
        return cls(skip_reason=reason, metadata=metadata)


@runtime_checkable
class SignalStrategy(Protocol):
    """Protocol that all signal strategies must implement.

    Strategies are pure: they receive ascending close prices and return a
    decision without touching storage or the network.
    """

    @property
    def name(self) -> str:
        """Unique strategy identifier (e.g., 'multi_indicator')."""
        ...

    @property
    def min_history(self) -> int:
        """Minimum number of price points needed to decide."""
        ...

    def decide(self, closes: Sequence[float]) -> StrategyDecision:
        """Evaluate ascending close prices for one symbol."""
        ...
