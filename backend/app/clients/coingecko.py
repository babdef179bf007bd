"""CoinGecko REST client for current prices, 24h change and 24h volume."""

import logging
from typing import Any

import httpx

from app.clients.errors import TransientFetchError
from core.models import MarketQuote

logger = logging.getLogger(__name__)


class MarketDataClient:
    """CoinGecko simple-price client.

    Failures surface as TransientFetchError and are not retried here: the
    market refresh task simply tries again on its next tick.
    """

    BASE_URL = "https://api.coingecko.com"

    def __init__(
        self,
        coin_ids: dict[str, str],
        base_url: str | None = None,
        api_key: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.coin_ids = dict(coin_ids)
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            headers = {}
            if self.api_key:
                headers["x-cg-demo-api-key"] = self.api_key
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def fetch_prices(self, symbols: list[str]) -> dict[str, MarketQuote]:
        """
        Fetch current quotes for the given symbols.

        Symbols without a configured CoinGecko id, or missing from the
        response, are left out of the result.

        Args:
            symbols: Asset symbols (e.g., ["BTC", "ETH"])

        Returns:
            Mapping of symbol to MarketQuote

        Raises:
            TransientFetchError: Non-2xx response, transport error or bad body
        """
        ids = {symbol: self.coin_ids[symbol] for symbol in symbols if symbol in self.coin_ids}
        if not ids:
            return {}

        params = {
            "ids": ",".join(ids.values()),
            "vs_currencies": "usd",
            "include_24hr_change": "true",
            "include_24hr_vol": "true",
        }

        client = await self._get_client()
        try:
            response = await client.get("/api/v3/simple/price", params=params)
        except httpx.TransportError as e:
            raise TransientFetchError(f"CoinGecko request failed: {e}") from e

        if response.status_code >= 300:
            raise TransientFetchError(
                f"CoinGecko response {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data: dict[str, Any] = response.json()
        except ValueError as e:
            raise TransientFetchError(f"CoinGecko returned invalid JSON: {e}") from e

        quotes: dict[str, MarketQuote] = {}
        for symbol, coin_id in ids.items():
            entry = data.get(coin_id)
            if not entry or entry.get("usd") is None:
                logger.warning(f"CoinGecko response missing {coin_id} for {symbol}")
                continue
            quotes[symbol] = MarketQuote(
                symbol=symbol,
                price=float(entry["usd"]),
                change_24h=float(entry.get("usd_24h_change") or 0.0),
                volume=float(entry.get("usd_24h_vol") or 0.0),
            )

        return quotes
