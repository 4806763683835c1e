"""Event indexer — copies committed engine events into market_events.

The engine never reads this table. The indexer keeps an in-memory cursor
over the EventLog and writes each new batch within one DB transaction.
"""
import asyncio
import json
import logging
from collections.abc import Sequence

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.pm_clearing.domain.events import MarketEvent
from src.pm_clearing.infrastructure.event_log import EventLog

logger = logging.getLogger(__name__)

_INSERT_EVENT_SQL = text("""
    INSERT INTO market_events (seq, event_type, market_id, actor, payload, emitted_at)
    VALUES (:seq, :event_type, :market_id, :actor, :payload, :emitted_at)
""")


async def write_events(events: Sequence[MarketEvent], db: AsyncSession) -> None:
    """Insert one row per event within the caller's transaction."""
    for ev in events:
        await db.execute(
            _INSERT_EVENT_SQL,
            {
                "seq": ev.seq,
                "event_type": ev.event_type.value,
                "market_id": ev.market_id,
                "actor": ev.actor,
                "payload": json.dumps(ev.payload),
                "emitted_at": ev.created_at,
            },
        )


class EventIndexer:
    def __init__(self, log: EventLog, batch_size: int = 500) -> None:
        self._log = log
        self._batch_size = batch_size
        self.cursor = 0  # last seq written

    async def flush(self, db: AsyncSession) -> int:
        """Write the next batch of unindexed events. Returns the number written."""
        batch = self._log.since(self.cursor)[: self._batch_size]
        if not batch:
            return 0
        try:
            await write_events(batch, db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        self.cursor = batch[-1].seq
        logger.debug("Indexed %d events, cursor=%d", len(batch), self.cursor)
        return len(batch)


async def run_indexer(
    indexer: EventIndexer,
    session_factory: async_sessionmaker[AsyncSession],
    interval_seconds: float,
    stop: asyncio.Event,
) -> None:
    """Flush until ``stop`` is set. DB errors are logged and retried next tick."""
    while not stop.is_set():
        try:
            async with session_factory() as db:
                while await indexer.flush(db):
                    pass
        except Exception:
            logger.exception("Event indexing failed at cursor=%d", indexer.cursor)
        try:
            await asyncio.wait_for(stop.wait(), timeout=interval_seconds)
        except asyncio.TimeoutError:
            pass
