"""Tests for signal strategies."""

import math
import random

import pytest

from core.indicators import IndicatorSnapshot
from core.models import Direction, SignalEngineConfig, StrategyName
from core.strategy import (
    MultiIndicatorStrategy,
    PercentChangeStrategy,
    SignalStrategy,
    create_strategy,
    list_strategies,
)
from core.strategy.multi_indicator import clamp_confidence
from core.strategy.protocol import (
    SKIP_BELOW_THRESHOLD,
    SKIP_CONFLICT,
    SKIP_INDICATORS_UNAVAILABLE,
    SKIP_INSUFFICIENT_HISTORY,
    SKIP_INVALID_PREVIOUS_PRICE,
    StrategyDecision,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _snapshot(ema_fast: float, ema_slow: float, histogram: float, rsi: float) -> IndicatorSnapshot:
    """Snapshot whose latest values are the given numbers."""
    return IndicatorSnapshot(
        ema_fast=[ema_fast],
        ema_slow=[ema_slow],
        macd_histogram=[histogram],
        rsi=[rsi],
    )


def _geometric(n: int, ratio: float, start: float = 100.0) -> list[float]:
    return [start * ratio ** i for i in range(n)]


def _accelerating(n: int, step: float, start: float = 100.0) -> list[float]:
    """Prices whose slope grows in magnitude every bar."""
    return [start + step * i * i for i in range(n)]


def _random_walk(rng: random.Random, n: int) -> list[float]:
    prices = [rng.uniform(10.0, 50000.0)]
    for _ in range(n - 1):
        prices.append(max(prices[-1] * (1 + rng.gauss(0, 0.02)), 0.01))
    return prices


# ---------------------------------------------------------------------------
# Registry / Protocol tests
# ---------------------------------------------------------------------------

class TestRegistry:
    """Strategies register themselves on import."""

    def test_both_strategies_registered(self):
        names = list_strategies()
        assert "multi_indicator" in names
        assert "percent_change" in names

    def test_default_config_creates_multi_indicator(self):
        strategy = create_strategy(SignalEngineConfig())
        assert isinstance(strategy, MultiIndicatorStrategy)
        assert strategy.name == "multi_indicator"

    def test_percent_change_selected_by_config(self):
        strategy = create_strategy(SignalEngineConfig(strategy=StrategyName.PERCENT_CHANGE))
        assert isinstance(strategy, PercentChangeStrategy)

    def test_strategies_satisfy_protocol(self):
        assert isinstance(MultiIndicatorStrategy(), SignalStrategy)
        assert isinstance(PercentChangeStrategy(), SignalStrategy)


class TestClampConfidence:
    def test_clamps_to_bounds(self):
        assert clamp_confidence(-5) == 0
        assert clamp_confidence(150) == 100
        assert clamp_confidence(72.4) == 72


# ---------------------------------------------------------------------------
# Multi-indicator scoring
# ---------------------------------------------------------------------------

class TestMultiIndicatorScore:
    """Scoring from the latest indicator values."""

    @pytest.fixture
    def strategy(self):
        return MultiIndicatorStrategy()

    def test_bullish_with_oversold_rsi_scores_90(self, strategy):
        """Trend up, positive histogram, wide EMA gap, RSI 25 -> LONG 90."""
        decision = strategy.score(_snapshot(110.0, 100.0, 0.5, 25.0))

        assert decision.is_signal
        assert decision.direction == Direction.LONG
        assert decision.confidence == 90

    def test_neutral_rsi_follows_trend(self, strategy):
        decision = strategy.score(_snapshot(110.0, 100.0, 0.5, 50.0))
        assert decision.direction == Direction.LONG
        assert decision.confidence == 90

    def test_overbought_rsi_disagrees_with_long(self, strategy):
        decision = strategy.score(_snapshot(110.0, 100.0, 0.5, 80.0))
        assert decision.direction == Direction.LONG
        assert decision.confidence == 80

    def test_narrow_gap_gets_no_gap_bonus(self, strategy):
        # 0.1% gap is below the 0.5% threshold
        decision = strategy.score(_snapshot(100.1, 100.0, 0.5, 50.0))
        assert decision.confidence == 80

    def test_bearish_with_overbought_rsi(self, strategy):
        decision = strategy.score(_snapshot(90.0, 100.0, -0.5, 75.0))
        assert decision.direction == Direction.SHORT
        assert decision.confidence == 90

    def test_zero_histogram_counts_as_bearish_momentum(self, strategy):
        decision = strategy.score(_snapshot(90.0, 100.0, 0.0, 50.0))
        assert decision.direction == Direction.SHORT
        # no histogram bonus
        assert decision.confidence == 80

    def test_trend_momentum_conflict_skips(self, strategy):
        decision = strategy.score(_snapshot(110.0, 100.0, -0.5, 50.0))

        assert not decision.is_signal
        assert decision.skip_reason == SKIP_CONFLICT
        assert decision.metadata["macd_histogram"] == -0.5

    def test_zero_slow_ema_does_not_divide(self, strategy):
        decision = strategy.score(_snapshot(1.0, 0.0, 0.5, 50.0))
        assert decision.direction == Direction.LONG
        assert decision.confidence == 80

    def test_nan_indicator_skips(self, strategy):
        decision = strategy.score(_snapshot(110.0, 100.0, 0.5, math.nan))
        assert decision.skip_reason == SKIP_INDICATORS_UNAVAILABLE


class TestMultiIndicatorDecide:
    """End-to-end decisions from close prices."""

    def test_insufficient_history_skips(self):
        strategy = MultiIndicatorStrategy()
        decision = strategy.decide(_geometric(209, 1.001))

        assert decision.skip_reason == SKIP_INSUFFICIENT_HISTORY
        assert decision.metadata == {"points": 209, "required": 210}

    def test_exactly_min_history_decides(self):
        decision = MultiIndicatorStrategy().decide(_geometric(210, 1.001))
        assert decision.skip_reason != SKIP_INSUFFICIENT_HISTORY

    def test_steady_uptrend_is_long(self):
        # Every bar is a gain: RSI reads 100 (overbought), so the regime bonus is withheld
        decision = MultiIndicatorStrategy().decide(_accelerating(256, 0.001))

        assert decision.direction == Direction.LONG
        assert decision.confidence == 80

    def test_steady_downtrend_is_short(self):
        decision = MultiIndicatorStrategy().decide(_accelerating(256, -0.001, start=200.0))

        assert decision.direction == Direction.SHORT
        assert decision.confidence == 80

    def test_flat_series_reads_as_short(self):
        # Equal EMAs and a zero histogram both count as bearish; RSI is pinned at 100
        decision = MultiIndicatorStrategy().decide([100.0] * 256)

        assert decision.direction == Direction.SHORT
        assert decision.confidence == 70

    @pytest.mark.parametrize("seed", [1, 7, 1234])
    def test_confidence_always_in_range(self, seed):
        rng = random.Random(seed)
        strategy = MultiIndicatorStrategy()

        for _ in range(60):
            decision = strategy.decide(_random_walk(rng, 256))
            assert 0 <= decision.confidence <= 100
            if decision.is_signal:
                assert decision.direction in (Direction.LONG, Direction.SHORT)
                assert decision.skip_reason is None
            else:
                assert decision.skip_reason is not None


# ---------------------------------------------------------------------------
# Percent-change strategy
# ---------------------------------------------------------------------------

class TestPercentChange:
    @pytest.fixture
    def strategy(self):
        return PercentChangeStrategy()

    def test_rise_above_threshold_is_long(self, strategy):
        decision = strategy.decide([100.0, 102.0])
        assert decision.direction == Direction.LONG
        assert decision.confidence == 20

    def test_drop_above_threshold_is_short(self, strategy):
        decision = strategy.decide([100.0, 97.0])
        assert decision.direction == Direction.SHORT
        assert decision.confidence == 30

    def test_small_move_skips(self, strategy):
        decision = strategy.decide([100.0, 100.5])
        assert decision.skip_reason == SKIP_BELOW_THRESHOLD

    def test_large_move_clamped(self, strategy):
        decision = strategy.decide([100.0, 50.0])
        assert decision.confidence == 100

    def test_single_point_skips(self, strategy):
        assert strategy.decide([100.0]).skip_reason == SKIP_INSUFFICIENT_HISTORY

    def test_zero_previous_price_skips(self, strategy):
        decision = strategy.decide([0.0, 10.0])

        assert not decision.is_signal
        assert decision.skip_reason == SKIP_INVALID_PREVIOUS_PRICE
        assert decision.metadata == {"previous": 0.0}


class TestStrategyDecision:
    def test_skip_carries_metadata(self):
        decision = StrategyDecision.skip("why", points=3)
        assert not decision.is_signal
        assert decision.confidence == 0
        assert decision.metadata == {"points": 3}
