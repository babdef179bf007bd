"""Signal generation entry points for the scheduler, HTTP and CLI."""

import logging
from typing import Iterable

from core.broadcast import BroadcastHub
from core.models import Signal
from core.signal_engine import EvaluationResult, SignalEngine

logger = logging.getLogger(__name__)


class SignalService:
    """Run the signal engine over the tracked symbols and broadcast results."""

    def __init__(self, engine: SignalEngine, hub: BroadcastHub, symbols: list[str]):
        self.engine = engine
        self.hub = hub
        self.symbols = list(symbols)
        self.engine.on_signal(self._on_new_signal)

    async def _on_new_signal(self, signal: Signal) -> None:
        await self.hub.publish_signal(signal)

    async def run_detailed(self, symbols: Iterable[str] | None = None) -> EvaluationResult:
        """Evaluate symbols (default: all tracked) and return the full result."""
        targets = list(symbols) if symbols else self.symbols
        result = await self.engine.evaluate_symbols(targets)

        if result.failures:
            logger.error(
                "Signal generation failed for %s",
                ", ".join(f"{s} ({e})" for s, e in result.failures.items()),
            )
        logger.info(
            f"Signal pass: {len(result.signals)} created, "
            f"{len(result.skipped)} skipped, {len(result.failures)} failed"
        )
        return result

    async def generate_signals_once(self, symbols: Iterable[str] | None = None) -> list[Signal]:
        """Run one full evaluation and return the signals it created."""
        result = await self.run_detailed(symbols)
        return result.signals
