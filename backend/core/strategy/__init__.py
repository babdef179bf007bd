"""Strategy plugin system.

Public API:
- SignalStrategy: Protocol that all strategies must implement
- StrategyDecision: Standard return type from strategy evaluation
- register_strategy: Decorator to register a strategy class
- create_strategy: Factory that instantiates the configured strategy
- list_strategies: Discover all registered strategies

Importing this package auto-registers all built-in strategies.
"""

from core.strategy.protocol import (
    SKIP_BELOW_THRESHOLD,
    SKIP_CONFLICT,
    SKIP_INDICATORS_UNAVAILABLE,
    SKIP_INSUFFICIENT_HISTORY,
    SKIP_INVALID_PREVIOUS_PRICE,
    SignalStrategy,
    StrategyDecision,
)
from core.strategy.registry import create_strategy, list_strategies, register_strategy

# Import built-in strategies to trigger auto-registration
from core.strategy.multi_indicator import MultiIndicatorStrategy
from core.strategy.percent_change import PercentChangeStrategy

__all__ = [
    "SignalStrategy",
    "StrategyDecision",
    "SKIP_BELOW_THRESHOLD",
    "SKIP_CONFLICT",
    "SKIP_INDICATORS_UNAVAILABLE",
    "SKIP_INSUFFICIENT_HISTORY",
    "SKIP_INVALID_PREVIOUS_PRICE",
    "register_strategy",
    "create_strategy",
    "list_strategies",
    "MultiIndicatorStrategy",
    "PercentChangeStrategy",
]
