"""Market data models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PricePoint(BaseModel):
    """A single price observation for an asset."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    price: float
    timestamp: datetime


class MarketQuote(BaseModel):
    """Current price, 24h change and 24h volume for one symbol."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    price: float
    change_24h: float = 0.0
    volume: float = 0.0

    def to_payload(self, timestamp: datetime) -> dict:
        """Payload of a ``marketUpdate`` event."""
        return {
            "symbol": self.symbol,
            "price": self.price,
            "change24h": self.change_24h,
            "volume": self.volume,
            "timestamp": timestamp.isoformat(),
        }


class FundingRate(BaseModel):
    """Perpetual funding rate as returned by the exchange.

    ``time`` is epoch milliseconds. Fields are validated strictly so that
    contract drift on the exchange side surfaces as a validation error.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    time: int = Field(strict=True)
    coin: str = Field(strict=True)
    funding_rate: float = Field(alias="fundingRate", strict=True)

    def to_payload(self) -> dict:
        return {"time": self.time, "coin": self.coin, "fundingRate": self.funding_rate}
