"""Strategy registry for discovering and instantiating strategies.

Usage:
    @register_strategy(StrategyName.MULTI_INDICATOR)
    class MultiIndicatorStrategy:
        ...

    strategy = create_strategy(config)
    names = list_strategies()
"""

from __future__ import annotations

import logging

from core.models.config import SignalEngineConfig, StrategyName

logger = logging.getLogger(__name__)

# Global registry: strategy name -> strategy class
_REGISTRY: dict[str, type] = {}


def register_strategy(name: StrategyName | str):
    """Decorator to register a strategy class under a given name.

    Raises:
        ValueError: If a strategy with the same name is already registered.
    """
    key = StrategyName(name).value

    def decorator(cls):
        if key in _REGISTRY:
            raise ValueError(
                f"Strategy '{key}' is already registered by {_REGISTRY[key].__name__}"
            )
        _REGISTRY[key] = cls
        logger.debug("Registered strategy: %s -> %s", key, cls.__name__)
        return cls

    return decorator


def create_strategy(config: SignalEngineConfig):
    """Create the strategy selected by ``config.strategy``.

    Raises:
        KeyError: If no strategy is registered under the configured name.
    """
    key = StrategyName(config.strategy).value
    cls = _REGISTRY.get(key)
    if cls is None:
        available = ", ".join(sorted(_REGISTRY.keys())) or "(none)"
        raise KeyError(f"Unknown strategy '{key}'. Available: {available}")
    return cls(config)


def list_strategies() -> list[str]:
    """Return a sorted list of registered strategy names."""
    return sorted(_REGISTRY.keys())
