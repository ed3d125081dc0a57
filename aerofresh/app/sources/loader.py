"""Load data source batches into a repository."""

import time
from datetime import datetime
from typing import Optional

from aerofresh.app.core.logging import get_logger
from aerofresh.app.db.repository import AircraftRepository
from aerofresh.app.sources.base import AircraftRecord, DataSource, PositionRecord

logger = get_logger(__name__)


async def sync_source(
    source: DataSource,
    repository: AircraftRepository,
    since: Optional[datetime] = None,
) -> int:
    """Fetch one batch from ``source`` and upsert it into ``repository``.

    Errors from the source propagate to the caller; nothing is retried.

    Returns:
        Number of records loaded.
    """
    started = time.time()
    records = await source.fetch_batch(since)

    loaded = 0
    for record in records:
        if isinstance(record, AircraftRecord):
            await repository.upsert_aircraft(record.aircraft, record.history)
        elif isinstance(record, PositionRecord):
            await repository.upsert_live(record.tail, record.position)
        else:
            logger.warning(f"Skipping unknown record type from {source.name}: {type(record).__name__}")
            continue
        loaded += 1

    logger.info(
        f"Synced {loaded} records from {source.name}",
        extra={"duration_ms": round((time.time() - started) * 1000, 2)},
    )
    return loaded
