"""Periodic market refresh: fetch quotes, record history, broadcast."""

import logging
from typing import Any

from app.clients import MarketDataClient
from core.broadcast import BroadcastHub
from core.models import HISTORY_LIMIT, MarketQuote, PricePoint
from core.scheduler import Clock, SystemClock

logger = logging.getLogger(__name__)


class MarketRefresher:
    """
    One market refresh per scheduler tick.

    Fetch errors propagate to the caller (the scheduler logs them and the
    next tick tries again); there is no retry within a tick.
    """

    def __init__(
        self,
        client: MarketDataClient,
        prices: Any,
        markets: Any,
        hub: BroadcastHub,
        symbols: list[str],
        clock: Clock | None = None,
        history_limit: int = HISTORY_LIMIT,
        prune_every: int = 30,
    ):
        self.client = client
        self.prices = prices
        self.markets = markets
        self.hub = hub
        self.symbols = list(symbols)
        self.clock = clock or SystemClock()
        self.history_limit = history_limit
        self.prune_every = prune_every
        self._refresh_count = 0

    async def refresh(self) -> dict[str, MarketQuote]:
        """
        Fetch quotes and fan them out.

        Returns:
            Quotes that were recorded, keyed by symbol
        """
        quotes = await self.client.fetch_prices(self.symbols)
        if not quotes:
            logger.warning("Market refresh returned no quotes")
            return {}

        timestamp = self.clock.now()
        await self.prices.append(
            [PricePoint(symbol=q.symbol, price=q.price, timestamp=timestamp) for q in quotes.values()]
        )

        for quote in quotes.values():
            await self.markets.insert(quote, timestamp)
            await self.hub.publish_market_update(quote, timestamp)

        self._refresh_count += 1
        if self.prune_every and self._refresh_count % self.prune_every == 0:
            for symbol in quotes:
                removed = await self.prices.prune(symbol, self.history_limit)
                if removed:
                    logger.debug(f"Pruned {removed} old price points for {symbol}")

        logger.debug(f"Market refresh recorded {len(quotes)} quotes")
        return quotes
