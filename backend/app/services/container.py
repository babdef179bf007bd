"""Wiring of the long-lived services for one process."""

import asyncio
import logging
from dataclasses import dataclass

from app.clients import HyperliquidClient, MarketDataClient
from app.config import Settings
from app.services.market_refresher import MarketRefresher
from app.services.signal_service import SignalService
from app.storage import Storage
from core.broadcast import BroadcastHub
from core.scheduler import Clock, Scheduler, SystemClock
from core.signal_engine import SignalEngine

logger = logging.getLogger(__name__)

MARKET_TASK = "market_refresh"
SIGNAL_TASK = "signal_regeneration"

# Seconds to wait for queued broadcasts before subscribers are dropped
DRAIN_TIMEOUT = 5.0


@dataclass
class Services:
    """Everything the API layer and the lifespan handler need."""

    settings: Settings
    storage: Storage
    hub: BroadcastHub
    scheduler: Scheduler
    engine: SignalEngine
    signal_service: SignalService
    market_refresher: MarketRefresher
    market_client: MarketDataClient
    hyperliquid: HyperliquidClient

    async def start(self) -> None:
        self.scheduler.start()

    async def close(self, drain_timeout: float = DRAIN_TIMEOUT) -> None:
        """Stop background work, flush queued broadcasts, then release clients, subscribers and storage."""
        await self.scheduler.stop()
        try:
            await asyncio.wait_for(self.hub.drain(), timeout=drain_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Broadcast drain timed out after {drain_timeout}s, dropping queued messages")
        await self.hub.close()
        for closer in (self.market_client.close, self.hyperliquid.close, self.storage.close):
            try:
                await closer()
            except Exception as e:
                logger.warning(f"Error during shutdown: {e}")


def build_services(
    settings: Settings,
    storage: Storage,
    clock: Clock | None = None,
    market_client: MarketDataClient | None = None,
    hyperliquid: HyperliquidClient | None = None,
) -> Services:
    """Construct and connect services. Nothing is started here."""
    clock = clock or SystemClock()

    hub = BroadcastHub(
        queue_size=settings.broadcast_queue_size,
        overflow=settings.broadcast_overflow,
    )
    market_client = market_client or MarketDataClient(
        coin_ids=settings.coingecko_ids,
        base_url=settings.coingecko_url,
        api_key=settings.coingecko_api_key,
        timeout=settings.market_timeout,
    )
    hyperliquid = hyperliquid or HyperliquidClient(
        base_url=settings.hyperliquid_api_url,
        timeout=settings.hyperliquid_timeout,
        retries=settings.hyperliquid_retries,
    )

    engine = SignalEngine(
        load_history=storage.prices.latest,
        save_signal=storage.signals.insert,
        config=settings.engine_config(),
        clock=clock,
    )
    signal_service = SignalService(engine, hub, settings.symbols)
    market_refresher = MarketRefresher(
        client=market_client,
        prices=storage.prices,
        markets=storage.markets,
        hub=hub,
        symbols=settings.symbols,
        clock=clock,
        history_limit=settings.history_window,
    )

    scheduler = Scheduler(clock)
    scheduler.add(MARKET_TASK, settings.market_interval, market_refresher.refresh)
    scheduler.add(SIGNAL_TASK, settings.signal_interval, signal_service.run_detailed)

    return Services(
        settings=settings,
        storage=storage,
        hub=hub,
        scheduler=scheduler,
        engine=engine,
        signal_service=signal_service,
        market_refresher=market_refresher,
        market_client=market_client,
        hyperliquid=hyperliquid,
    )
