"""Polling loop that claims pending import jobs one at a time."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import timedelta

from lead_importer.core.config import Settings
from lead_importer.db.job_store import JobStore
from lead_importer.db.models.import_job import JobState
from lead_importer.services.job_processor import JobProcessor

logger = logging.getLogger(__name__)


@dataclass
class SchedulerStats:
    iterations: int = 0
    claimed: int = 0
    done: int = 0
    failed: int = 0
    errors: int = 0


class Scheduler:
    """Single-flight worker loop.

    Each iteration claims the oldest pending job, processes it to completion
    and starts over. Idle polls wait `poll_interval`; any error escaping a job
    is logged and followed by `error_backoff`. `stop()` wakes a sleeping loop
    at once but never interrupts a job in flight.
    """

    def __init__(
        self,
        job_store: JobStore,
        processor: JobProcessor,
        settings: Settings,
        *,
        max_iterations: int | None = None,
    ) -> None:
        self.job_store = job_store
        self.processor = processor
        self.settings = settings
        self.max_iterations = max_iterations
        self.stats = SchedulerStats()
        self._stop = asyncio.Event()

    def stop(self) -> None:
        if not self._stop.is_set():
            logger.info("Stop requested; finishing current iteration")
        self._stop.set()

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    @property
    def on_last_iteration(self) -> bool:
        return self.max_iterations is not None and self.stats.iterations >= self.max_iterations

    async def run(self) -> SchedulerStats:
        if not self.settings.worker_enabled:
            logger.info("Import worker disabled (WORKER_ENABLED=false); exiting")
            return self.stats

        logger.info(
            f"Import worker running (batch_size={self.settings.batch_size}, "
            f"poll_interval={self.settings.poll_interval}s)"
        )
        while not self.stopping:
            if self.on_last_iteration:
                break
            self.stats.iterations += 1
            try:
                await self.run_once()
            except Exception as exc:
                self.stats.errors += 1
                logger.error(f"Worker error: {exc}", exc_info=True)
                if not self.on_last_iteration:
                    await self._wait(self.settings.error_backoff)

        logger.info(
            f"Import worker stopped: {self.stats.claimed} claimed, {self.stats.done} done, "
            f"{self.stats.failed} failed, {self.stats.errors} errors"
        )
        return self.stats

    async def run_once(self) -> None:
        """One claim/execute cycle; waits `poll_interval` when the queue is empty.

        The final iteration of a bounded run skips the wait so `--once` exits promptly.
        """
        if self.settings.stale_job_timeout > 0:
            requeued = await self.job_store.requeue_stale(
                timedelta(seconds=self.settings.stale_job_timeout)
            )
            if requeued:
                logger.warning(f"Requeued {requeued} job(s) stuck in processing")

        job = await self.job_store.claim_next()
        if job is None:
            logger.debug("No pending jobs")
            if not self.on_last_iteration:
                await self._wait(self.settings.poll_interval)
            return

        self.stats.claimed += 1
        logger.info(f"Claimed job {job.id}")
        outcome = await self.processor.process(job)
        if outcome is JobState.DONE:
            self.stats.done += 1
        else:
            self.stats.failed += 1

    async def _wait(self, seconds: float) -> None:
        """Sleep for `seconds` unless a stop is requested first."""
        if seconds <= 0 or self.stopping:
            return
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
