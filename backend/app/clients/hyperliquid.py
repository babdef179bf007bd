"""Hyperliquid RPC client with timeout, bounded retry and response validation."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Literal

import httpx
from pydantic import BaseModel, ValidationError

from app.clients.errors import (
    DeserializationError,
    RetryExhaustedError,
    TerminalHTTPError,
    TransientFetchError,
)
from core.models import FundingRate

logger = logging.getLogger(__name__)

BACKOFF_BASE_MS = 300
BACKOFF_CAP_MS = 30_000


def backoff_delay(attempt: int, base_ms: int = BACKOFF_BASE_MS, cap_ms: int = BACKOFF_CAP_MS) -> int:
    """Delay in milliseconds before retry number `attempt`: min(base * 2^attempt, cap)."""
    return min(base_ms * (2 ** attempt), cap_ms)


def is_retryable_status(status_code: int) -> bool:
    """5xx and 429 are retried; every other error status is terminal."""
    return status_code >= 500 or status_code == 429


class FundingRateRequest(BaseModel):
    """Body of an /info funding-rate request."""

    type: Literal["fundingRate"] = "fundingRate"
    coin: str


class HyperliquidClient:
    """Hyperliquid info API client."""

    BASE_URL = "https://api.hyperliquid.xyz"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 8.0,
        retries: int = 2,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout
        self.retries = retries
        self._transport = transport
        self._sleep = sleep
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"content-type": "application/json"},
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def post_json(self, path: str, body: dict[str, Any]) -> Any:
        """
        POST a JSON body and return the decoded JSON response.

        5xx, 429 and transport/timeout errors are retried with exponential
        backoff; other 4xx responses fail immediately.

        Args:
            path: API route (e.g., "/info")
            body: Request payload

        Returns:
            Decoded JSON response

        Raises:
            TerminalHTTPError: Terminal 4xx response
            RetryExhaustedError: Retryable failure persisted past `retries`
            DeserializationError: 2xx response whose body is not JSON
        """
        client = await self._get_client()
        attempt = 0

        while True:
            try:
                response = await client.post(path, json=body)
                if response.status_code >= 400:
                    if not is_retryable_status(response.status_code):
                        raise TerminalHTTPError(response.status_code, response.text)
                    raise TransientFetchError(
                        f"HTTP {response.status_code}: {response.text[:200]}",
                        status_code=response.status_code,
                    )
            except (httpx.TransportError, TransientFetchError) as e:
                if attempt >= self.retries:
                    raise RetryExhaustedError(attempt + 1, e) from e
                attempt += 1
                delay = backoff_delay(attempt)
                logger.warning(
                    "Hyperliquid %s failed on attempt %d: %s (backoff %dms)",
                    path, attempt, e, delay,
                )
                await self._sleep(delay / 1000)
                continue

            try:
                return response.json()
            except ValueError:
                raise DeserializationError(
                    "Response", ["<root>: invalid JSON"], "", response.text
                )

    async def get_funding_rate(self, coin: str) -> FundingRate:
        """
        Retrieve the funding rate for a coin.

        Args:
            coin: Asset symbol (e.g., "BTC")

        Returns:
            Validated FundingRate

        Raises:
            DeserializationError: Response failed shape validation
        """
        request = FundingRateRequest(coin=coin)
        raw = await self.post_json("/info", request.model_dump())

        try:
            return FundingRate.model_validate(raw)
        except ValidationError as e:
            raise DeserializationError.from_validation_error("FundingRate", e, raw) from e
