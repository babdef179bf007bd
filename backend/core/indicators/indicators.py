"""Technical indicators for signal generation.

All functions are pure: they never mutate their inputs, keep no state
between calls and never raise for short inputs. Insufficient data is
reported through sentinels instead (NaN entries or empty arrays).

Recursive smoothing is evaluated on NumPy float64 arrays.
"""

import math
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from core.models.config import SignalEngineConfig


def _to_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=np.float64)


# =============================================================================
# Moving averages and oscillators
# =============================================================================

def ema(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate Exponential Moving Average.

    The running value is seeded with the first sample, then smoothed with
    k = 2 / (period + 1). A period of 1 or less returns a copy of the input.

    Args:
        values: Sequence of price values
        period: EMA period

    Returns:
        List of EMA values (same length as input)
    """
    if period <= 1:
        return [float(v) for v in values]

    arr = _to_array(values)
    if arr.size == 0:
        return []

    k = 2.0 / (period + 1)
    result = np.empty_like(arr)
    result[0] = arr[0]
    for i in range(1, len(arr)):
        result[i] = arr[i] * k + result[i - 1] * (1 - k)

    return result.tolist()


@dataclass(frozen=True)
class MacdResult:
    """MACD line, signal line and histogram (all empty on insufficient data)."""

    macd: list[float] = field(default_factory=list)
    signal: list[float] = field(default_factory=list)
    histogram: list[float] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.histogram


def macd(
    values: Sequence[float],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> MacdResult:
    """
    Calculate MACD (Moving Average Convergence Divergence).

    Returns an empty result when fewer than slow + signal + 5 samples are
    available.

    Args:
        values: Sequence of close prices
        fast: Fast EMA period
        slow: Slow EMA period
        signal: Signal line EMA period

    Returns:
        MacdResult with macd line, signal line and histogram
    """
    if len(values) < slow + signal + 5:
        return MacdResult()

    macd_line = np.asarray(ema(values, fast)) - np.asarray(ema(values, slow))
    signal_line = np.asarray(ema(macd_line.tolist(), signal))
    histogram = macd_line - signal_line

    return MacdResult(
        macd=macd_line.tolist(),
        signal=signal_line.tolist(),
        histogram=histogram.tolist(),
    )


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    # No losses in the window pins the oscillator at its upper bound.
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def rsi(values: Sequence[float], length: int = 14) -> list[float]:
    """
    Calculate the Relative Strength Index with Wilder smoothing.

    The first `length` entries are NaN. The initial averages are the mean
    gain and loss over the first `length` deltas.

    Args:
        values: Sequence of close prices
        length: Lookback period

    Returns:
        List of RSI values in [0, 100] (same length as input)
    """
    n = len(values)
    result = [math.nan] * n
    if length < 1 or n <= length:
        return result

    deltas = np.diff(_to_array(values))
    gains = np.clip(deltas, 0.0, None)
    losses = np.clip(-deltas, 0.0, None)

    avg_gain = float(gains[:length].sum()) / length
    avg_loss = float(losses[:length].sum()) / length
    result[length] = _rsi_value(avg_gain, avg_loss)

    for i in range(length + 1, n):
        avg_gain = (avg_gain * (length - 1) + float(gains[i - 1])) / length
        avg_loss = (avg_loss * (length - 1) + float(losses[i - 1])) / length
        result[i] = _rsi_value(avg_gain, avg_loss)

    return result


# =============================================================================
# Volatility
# =============================================================================

def true_range(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
) -> list[float]:
    """
    Calculate True Range.

    TR = max(high - low, abs(high - prev_close), abs(low - prev_close))

    Args:
        highs: Sequence of high prices
        lows: Sequence of low prices
        closes: Sequence of close prices

    Returns:
        List of True Range values
    """
    n = len(highs)
    if n == 0:
        return []

    result = [float(highs[0]) - float(lows[0])]

    for i in range(1, n):
        hl = highs[i] - lows[i]
        hc = abs(highs[i] - closes[i - 1])
        lc = abs(lows[i] - closes[i - 1])
        result.append(float(max(hl, hc, lc)))

    return result


def atr(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14,
) -> list[float]:
    """
    Calculate Average True Range (ATR).

    Uses RMA (Relative Moving Average) / Wilder's smoothing. The first
    defined value, at index period - 1, is the simple average of the first
    `period` true ranges.

    Args:
        highs: Sequence of high prices
        lows: Sequence of low prices
        closes: Sequence of close prices
        period: ATR period

    Returns:
        List of ATR values (NaN before index period - 1)
    """
    tr = true_range(highs, lows, closes)

    if period < 1 or len(tr) < period:
        return [math.nan] * len(tr)

    tr_arr = np.asarray(tr, dtype=np.float64)
    result = np.full_like(tr_arr, np.nan)
    result[period - 1] = tr_arr[:period].mean()

    for i in range(period, len(tr_arr)):
        result[i] = (result[i - 1] * (period - 1) + tr_arr[i]) / period

    return result.tolist()


# =============================================================================
# Per-symbol snapshot
# =============================================================================

@dataclass(frozen=True)
class IndicatorSnapshot:
    """Indicator arrays for one symbol, used within a single evaluation pass."""

    ema_fast: list[float]
    ema_slow: list[float]
    macd_histogram: list[float]
    rsi: list[float]

    @staticmethod
    def _last(values: list[float]) -> float:
        return values[-1] if values else math.nan

    @property
    def latest_ema_fast(self) -> float:
        return self._last(self.ema_fast)

    @property
    def latest_ema_slow(self) -> float:
        return self._last(self.ema_slow)

    @property
    def latest_histogram(self) -> float:
        return self._last(self.macd_histogram)

    @property
    def latest_rsi(self) -> float:
        return self._last(self.rsi)

    @property
    def is_complete(self) -> bool:
        """True when every latest value is defined."""
        return not any(
            math.isnan(v)
            for v in (
                self.latest_ema_fast,
                self.latest_ema_slow,
                self.latest_histogram,
                self.latest_rsi,
            )
        )


def compute_snapshot(
    closes: Sequence[float],
    config: SignalEngineConfig | None = None,
) -> IndicatorSnapshot:
    """
    Calculate every indicator the signal engine needs for one symbol.

    Args:
        closes: Ascending close prices
        config: Indicator periods (defaults to SignalEngineConfig())

    Returns:
        IndicatorSnapshot with ema50, ema200, MACD histogram and RSI14 arrays
    """
    config = config or SignalEngineConfig()
    return IndicatorSnapshot(
        ema_fast=ema(closes, config.ema_fast_period),
        ema_slow=ema(closes, config.ema_slow_period),
        macd_histogram=macd(
            closes,
            config.macd_fast,
            config.macd_slow,
            config.macd_signal,
        ).histogram,
        rsi=rsi(closes, config.rsi_length),
    )
