"""Job queue access: claiming pending imports and recording their outcome."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Protocol

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import aliased

from lead_importer.db.models.import_job import ImportJob, JobState

logger = logging.getLogger(__name__)


class JobStore(Protocol):
    async def claim_next(self) -> ImportJob | None: ...

    async def record_progress(self, job_id: str, processed_rows: int, total_rows: int) -> None: ...

    async def mark_done(self, job_id: str) -> bool: ...

    async def mark_failed(self, job_id: str, error: str) -> bool: ...

    async def requeue_stale(self, older_than: timedelta) -> int: ...


class SqlJobStore:
    """`import_jobs` table backed by the async SQLAlchemy session factory.

    Every method runs in its own short transaction so a status change is
    visible to other workers as soon as the call returns.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def claim_next(self) -> ImportJob | None:
        """Flip the oldest pending job to processing and return it.

        The candidate is picked with FOR UPDATE SKIP LOCKED and the update is
        guarded on status, so two workers polling at once never get the same job.
        """
        # Aliased so the subquery is not correlated to the UPDATE target
        candidate = aliased(ImportJob)
        oldest_pending = (
            select(candidate.id)
            .where(candidate.status == JobState.PENDING.value)
            .order_by(candidate.created_at.asc())
            .limit(1)
            .with_for_update(skip_locked=True)
            .scalar_subquery()
        )
        stmt = (
            update(ImportJob)
            .where(ImportJob.id == oldest_pending)
            .where(ImportJob.status == JobState.PENDING.value)
            .values(
                status=JobState.PROCESSING.value,
                error=None,
                started_at=datetime.now(timezone.utc),
                finished_at=None,
                processed_rows=0,
            )
            .returning(ImportJob)
            .execution_options(synchronize_session=False)
        )
        async with self._session_factory() as session:
            job = (await session.execute(stmt)).scalars().first()
            await session.commit()
        return job

    async def record_progress(self, job_id: str, processed_rows: int, total_rows: int) -> None:
        async with self._session_factory() as session:
            await session.execute(
                update(ImportJob)
                .where(ImportJob.id == job_id)
                .values(processed_rows=processed_rows, total_rows=total_rows)
            )
            await session.commit()

    async def mark_done(self, job_id: str) -> bool:
        return await self._finish(job_id, JobState.DONE, error=None)

    async def mark_failed(self, job_id: str, error: str) -> bool:
        return await self._finish(job_id, JobState.FAILED, error=error)

    async def _finish(self, job_id: str, state: JobState, error: str | None) -> bool:
        # Only the worker holding the job may finalize it; done jobs stay untouched.
        async with self._session_factory() as session:
            result = await session.execute(
                update(ImportJob)
                .where(ImportJob.id == job_id)
                .where(ImportJob.status == JobState.PROCESSING.value)
                .values(
                    status=state.value,
                    error=error,
                    finished_at=datetime.now(timezone.utc),
                )
            )
            await session.commit()
        if result.rowcount == 0:
            logger.warning(
                f"Job {job_id} was not in processing state; {state.value} status not recorded"
            )
            return False
        return True

    async def requeue_stale(self, older_than: timedelta) -> int:
        """Return processing jobs claimed before `now - older_than` to pending."""
        cutoff = datetime.now(timezone.utc) - older_than
        async with self._session_factory() as session:
            result = await session.execute(
                update(ImportJob)
                .where(ImportJob.status == JobState.PROCESSING.value)
                .where(ImportJob.started_at < cutoff)
                .values(status=JobState.PENDING.value, started_at=None)
            )
            await session.commit()
        return result.rowcount
