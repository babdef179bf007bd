"""Realised profit and loss records."""

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class PerformanceRecord(BaseModel):
    """One realised (or still open) PnL entry for a user and signal.

    ``pnl`` is measured in quote currency.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    user_id: str
    signal_id: str
    pnl: float
    is_open: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_payload(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "signalId": self.signal_id,
            "pnl": self.pnl,
            "isOpen": self.is_open,
            "createdAt": self.created_at.isoformat(),
        }


def summarize(records: list[PerformanceRecord]) -> dict:
    """Aggregate PnL over a set of records."""
    return {
        "total_pnl": float(sum(r.pnl for r in records)),
        "total_records": len(records),
        "open_positions": sum(1 for r in records if r.is_open),
    }
