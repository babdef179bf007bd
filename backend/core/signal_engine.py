"""Signal engine turning price history into trading signals.

This module is pure business logic with no I/O dependencies.
Reading price history and persisting signals are injected via callbacks,
so the same engine serves the scheduled loop, on-demand requests and tests.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable

from core.models import PricePoint, Signal, SignalEngineConfig
from core.scheduler import Clock, SystemClock
from core.strategy import SignalStrategy, create_strategy

logger = logging.getLogger(__name__)

# Type aliases for callbacks
LoadHistoryCallback = Callable[[str, int], Awaitable[list[PricePoint]]]
SaveSignalCallback = Callable[[Signal], Awaitable[None]]
SignalCallback = Callable[[Signal], Awaitable[None]]


@dataclass
class EvaluationResult:
    """Outcome of one evaluation pass.

    Attributes:
        signals: Signals created and persisted during the pass.
        skipped: Symbols with no signal and the (expected) reason.
        failures: Symbols whose evaluation or persistence failed, with the error.
    """

    signals: list[Signal] = field(default_factory=list)
    skipped: dict[str, str] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)


class SignalEngine:
    """
    Evaluate symbols independently and emit at most one Signal per symbol.

    Each symbol is evaluated under its own lock, so a scheduled pass and an
    on-demand request never evaluate (and insert for) the same symbol at the
    same time. Different symbols are not serialized against each other.

    All I/O operations are injected via callbacks:
    - load_history: Return up to N ascending price points for a symbol
    - save_signal: Persist a new signal (e.g., to database)
    """

    def __init__(
        self,
        load_history: LoadHistoryCallback,
        save_signal: SaveSignalCallback | None = None,
        config: SignalEngineConfig | None = None,
        strategy: SignalStrategy | None = None,
        clock: Clock | None = None,
    ):
        self.config = config or SignalEngineConfig()
        self.strategy = strategy or create_strategy(self.config)
        self.clock = clock or SystemClock()

        self._load_history = load_history
        self._save_signal = save_signal

        self._callbacks: list[SignalCallback] = []
        self._symbol_locks: dict[str, asyncio.Lock] = {}

    def on_signal(self, callback: SignalCallback) -> None:
        """Register callback for new signals.

        Note: Duplicate callbacks are ignored.
        """
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def off_signal(self, callback: SignalCallback) -> None:
        """Unregister callback for new signals."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _lock_for(self, symbol: str) -> asyncio.Lock:
        lock = self._symbol_locks.get(symbol)
        if lock is None:
            lock = asyncio.Lock()
            self._symbol_locks[symbol] = lock
        return lock

    async def _evaluate_symbol(self, symbol: str, result: EvaluationResult) -> None:
        history = await self._load_history(symbol, self.config.history_window)
        closes = [p.price for p in history]

        decision = self.strategy.decide(closes)
        if not decision.is_signal:
            result.skipped[symbol] = decision.skip_reason or "no_signal"
            logger.info(
                f"Skipping {symbol}: {result.skipped[symbol]} "
                f"({len(closes)} points)"
            )
            return

        signal = Signal(
            asset=symbol,
            direction=decision.direction,
            confidence=decision.confidence,
            active=True,
            created_at=self.clock.now(),
        )

        if self._save_signal:
            await self._save_signal(signal)

        result.signals.append(signal)
        logger.info(
            f"{signal.direction.value} signal: {symbol} "
            f"confidence={signal.confidence} strategy={self.strategy.name}"
        )

        # Notify callbacks (WebSocket broadcast, etc.)
        for callback in self._callbacks:
            try:
                await callback(signal)
            except Exception as e:
                logger.error(f"Signal callback error for {symbol}: {e}")

    async def evaluate_symbols(self, symbols: Iterable[str]) -> EvaluationResult:
        """
        Evaluate every symbol, isolating failures per symbol.

        Args:
            symbols: Symbols to evaluate

        Returns:
            EvaluationResult with created signals, skips and failures
        """
        result = EvaluationResult()

        for symbol in dict.fromkeys(symbols):
            async with self._lock_for(symbol):
                try:
                    await self._evaluate_symbol(symbol, result)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    result.failures[symbol] = f"{type(e).__name__}: {e}"
                    logger.error(f"Signal evaluation failed for {symbol}: {e}")

        return result

    async def evaluate(self, symbols: Iterable[str]) -> list[Signal]:
        """Evaluate symbols and return the signals that were created."""
        result = await self.evaluate_symbols(symbols)
        return result.signals
