"""Append-only event log.

The engine appends a batch per committed operation; failed operations append
nothing. Subscribers are notified synchronously after the batch is stored.
A subscriber that raises is logged and skipped so indexing can never undo a
committed operation.
"""
import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import replace
from typing import Any

from src.pm_clearing.domain.events import MarketEvent
from src.pm_common.datetime_utils import Clock, utc_now
from src.pm_common.enums import EventType

logger = logging.getLogger(__name__)

Subscriber = Callable[[MarketEvent], None]


class PendingEvents:
    """Per-operation buffer; flushed to the log only when the operation commits."""

    def __init__(self) -> None:
        self._items: list[MarketEvent] = []

    def emit(
        self,
        event_type: EventType,
        market_id: int | None,
        actor: str,
        **payload: Any,
    ) -> None:
        self._items.append(
            MarketEvent(
                seq=0, event_type=event_type, market_id=market_id, actor=actor, payload=payload
            )
        )

    def drain(self) -> list[MarketEvent]:
        items, self._items = self._items, []
        return items


class EventLog:
    def __init__(self, clock: Clock = utc_now) -> None:
        self._events: list[MarketEvent] = []
        self._subscribers: list[Subscriber] = []
        self._clock = clock
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._events)

    def append_batch(self, events: Sequence[MarketEvent]) -> list[MarketEvent]:
        with self._lock:
            now = self._clock()
            stored = []
            for ev in events:
                stamped = replace(ev, seq=len(self._events) + 1, created_at=now)
                self._events.append(stamped)
                stored.append(stamped)
        for ev in stored:
            self._notify(ev)
        return stored

    def since(self, seq: int = 0, market_id: int | None = None) -> list[MarketEvent]:
        """Events with ``seq`` greater than the given cursor, oldest first."""
        with self._lock:
            events = self._events[seq:]
        if market_id is not None:
            events = [e for e in events if e.market_id == market_id]
        return events

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def _notify(self, event: MarketEvent) -> None:
        for subscriber in self._subscribers:
            try:
                subscriber(event)
            except Exception:
                logger.exception(
                    "Event subscriber failed: seq=%d type=%s", event.seq, event.event_type.value
                )
