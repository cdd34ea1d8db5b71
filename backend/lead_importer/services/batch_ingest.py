"""Chunked, throttled ingestion of raw rows into the leads store."""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

from lead_importer.core.errors import BulkInsertError
from lead_importer.db.lead_sink import LeadSink
from lead_importer.services.normalizer import normalize_row
from lead_importer.utils.batching import chunked

logger = logging.getLogger(__name__)

BATCH_SIZE = 500
BATCH_DELAY = 0.1  # seconds; keeps bulk writes from bursting the database

# Called after each committed batch with (rows committed so far, total rows)
BatchCallback = Callable[[int, int], Awaitable[None]]


@dataclass(frozen=True)
class IngestResult:
    batches: int
    rows: int


async def ingest(
    rows: Sequence[dict[str, Any]],
    job_id: str,
    *,
    sink: LeadSink,
    batch_size: int = BATCH_SIZE,
    batch_delay: float = BATCH_DELAY,
    on_batch: BatchCallback | None = None,
) -> IngestResult:
    """Normalize rows and push them to `sink` one batch at a time.

    Batches are written strictly in order. The first rejected batch stops the
    import; batches committed before it stay committed.

    Raises:
        BulkInsertError: with the store's message, the 1-indexed failing batch
            and the number of rows committed before it.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")

    total = len(rows)
    total_batches = math.ceil(total / batch_size)
    committed = 0

    for number, batch in enumerate(chunked(rows, batch_size), start=1):
        payload = [normalize_row(row).model_dump() for row in batch]
        try:
            await sink.bulk_insert(payload)
        except BulkInsertError as e:
            logger.error(
                f"Job {job_id}: batch {number}/{total_batches} failed after "
                f"{committed} committed rows: {e}"
            )
            raise BulkInsertError(
                str(e), batch_number=number, committed_rows=committed
            ) from e

        committed += len(batch)
        logger.info(f"Job {job_id}: batch {number}/{total_batches} committed ({committed}/{total} rows)")
        if on_batch is not None:
            await on_batch(committed, total)

        if number < total_batches and batch_delay > 0:
            await asyncio.sleep(batch_delay)

    return IngestResult(batches=total_batches, rows=committed)
