"""Run one claimed import job from download to final status."""

from __future__ import annotations

import asyncio
import logging

from lead_importer.core.config import Settings
from lead_importer.core.errors import ImportFailure
from lead_importer.db.job_store import JobStore
from lead_importer.db.lead_sink import LeadSink
from lead_importer.db.models.import_job import ImportJob, JobState
from lead_importer.services.batch_ingest import ingest
from lead_importer.services.progress_tracker import ProgressTracker
from lead_importer.services.sheet_reader import read_rows
from lead_importer.storage.base import FileStorage

logger = logging.getLogger(__name__)


class JobProcessor:
    """Fetch, parse and ingest the file behind a job, then record the outcome.

    Expected failures (download, decode, bulk write) end with the job marked
    failed and the error text stored on it. Anything else is recorded the same
    way when possible and then re-raised to the caller.
    """

    def __init__(
        self,
        job_store: JobStore,
        storage: FileStorage,
        sink: LeadSink,
        settings: Settings,
        progress: ProgressTracker | None = None,
    ) -> None:
        self.job_store = job_store
        self.storage = storage
        self.sink = sink
        self.settings = settings
        self.progress = progress

    async def process(self, job: ImportJob) -> JobState:
        logger.info(f"Processing job {job.id}: {job.file_path}")
        try:
            content = await self.storage.download(self.settings.storage_bucket, job.file_path)
            # Decoding is CPU bound; keep the event loop free for shutdown signals
            rows = await asyncio.to_thread(read_rows, content, job.file_path)
            logger.info(f"Job {job.id}: {len(rows)} rows found")
            await self._publish(job.id, 0.0, f"Processed 0/{len(rows)} rows", "processing")

            async def on_batch(committed: int, total: int) -> None:
                await self.job_store.record_progress(job.id, committed, total)
                await self._publish(
                    job.id,
                    committed / total if total else 1.0,
                    f"Processed {committed}/{total} rows",
                    "processing",
                )

            result = await ingest(
                rows,
                job.id,
                sink=self.sink,
                batch_size=self.settings.batch_size,
                batch_delay=self.settings.batch_delay,
                on_batch=on_batch,
            )
        except ImportFailure as exc:
            logger.error(f"Job {job.id} failed: {exc}")
            await self._fail(job, str(exc))
            return JobState.FAILED
        except Exception as exc:
            logger.error(f"Unexpected error processing job {job.id}: {exc}", exc_info=True)
            try:
                await self._fail(job, f"Unexpected error: {exc}")
            except Exception as status_exc:
                logger.error(
                    f"Could not mark job {job.id} as failed, it stays in processing: {status_exc}"
                )
            raise

        await self.job_store.mark_done(job.id)
        await self._publish(
            job.id,
            1.0,
            "Import complete",
            JobState.DONE.value,
            meta={"rows": result.rows, "batches": result.batches},
        )
        logger.info(f"Job {job.id} completed: {result.rows} rows in {result.batches} batches")
        return JobState.DONE

    async def _fail(self, job: ImportJob, message: str) -> None:
        await self.job_store.mark_failed(job.id, message)
        await self._publish(job.id, 0.0, "Import failed", JobState.FAILED.value, meta={"error": message})

    async def _publish(
        self,
        job_id: str,
        progress: float,
        message: str,
        status: str,
        meta: dict | None = None,
    ) -> None:
        if self.progress is not None:
            await self.progress.publish(job_id, progress, message, status=status, meta=meta)
