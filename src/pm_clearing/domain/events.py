"""Market events — observable records for indexers, never read by the engine."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.pm_common.enums import EventType


@dataclass(frozen=True)
class MarketEvent:
    seq: int                    # assigned by EventLog on append, 1-based
    event_type: EventType
    market_id: int | None       # None for engine-wide events (fee recipient)
    actor: str
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "seq": self.seq,
            "event_type": self.event_type.value,
            "market_id": self.market_id,
            "actor": self.actor,
            "payload": dict(self.payload),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
