"""Signal data models."""

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Direction(str, Enum):
    """Trade direction."""

    LONG = "LONG"
    SHORT = "SHORT"


def _new_signal_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Signal(BaseModel):
    """Trading signal record.

    Signals are append-only: ``active`` is set at creation and never
    flipped. Consumers treat the most recent signal per asset as current.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_signal_id)
    asset: str
    direction: Direction
    confidence: int = Field(ge=0, le=100)
    active: bool = True
    created_at: datetime = Field(default_factory=_utcnow)

    def to_payload(self) -> dict:
        """Wire representation used by the API and broadcast events."""
        return {
            "id": self.id,
            "asset": self.asset,
            "direction": self.direction.value,
            "confidence": self.confidence,
            "active": self.active,
            "createdAt": self.created_at.isoformat(),
        }
