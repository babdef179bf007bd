"""External API clients."""

from app.clients.coingecko import MarketDataClient
from app.clients.errors import (
    ClientError,
    DeserializationError,
    RetryExhaustedError,
    TerminalHTTPError,
    TransientFetchError,
)
from app.clients.hyperliquid import HyperliquidClient, backoff_delay, is_retryable_status

__all__ = [
    "MarketDataClient",
    "HyperliquidClient",
    "backoff_delay",
    "is_retryable_status",
    "ClientError",
    "DeserializationError",
    "TerminalHTTPError",
    "RetryExhaustedError",
    "TransientFetchError",
]
