"""Application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from core.broadcast import OverflowPolicy
from core.models import SignalEngineConfig, StrategyName


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    storage_backend: Literal["postgres", "memory"] = "postgres"
    database_url: str = "postgresql://localhost/liquidalpha"

    # Tracked assets and their CoinGecko ids
    symbols: list[str] = ["BTC", "ETH", "SOL"]
    coingecko_ids: dict[str, str] = {
        "BTC": "bitcoin",
        "ETH": "ethereum",
        "SOL": "solana",
    }
    coingecko_url: str = "https://api.coingecko.com"
    coingecko_api_key: str = ""
    market_timeout: float = 10.0

    # Hyperliquid RPC
    hyperliquid_api_url: str = "https://api.hyperliquid.xyz"
    hyperliquid_timeout: float = 8.0
    hyperliquid_retries: int = 2

    # Scheduler intervals (seconds)
    market_interval: float = 10.0
    signal_interval: float = 30.0

    # Signal engine
    strategy: StrategyName = StrategyName.MULTI_INDICATOR
    history_window: int = 256
    min_history: int = 210

    # Broadcast
    broadcast_queue_size: int = 256
    broadcast_overflow: OverflowPolicy = OverflowPolicy.DROP_OLDEST

    # Server
    host: str = "0.0.0.0"
    port: int = 3001
    debug: bool = False
    log_level: str = "INFO"

    def engine_config(self) -> SignalEngineConfig:
        """Signal engine parameters derived from settings."""
        return SignalEngineConfig(
            strategy=self.strategy,
            history_window=self.history_window,
            min_history=self.min_history,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
