"""Read-only import job status endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lead_importer.api.dependencies.db import get_progress_tracker, get_session
from lead_importer.api.routers.job_helpers import serialize_job
from lead_importer.api.schemas.job import JobStatus
from lead_importer.db.models.import_job import ImportJob, JobState
from lead_importer.services.progress_tracker import ProgressTracker

router = APIRouter()


async def _progress_for(progress: ProgressTracker | None, job_id: str) -> dict:
    if progress is None:
        return {}
    return await progress.fetch(job_id)


@router.get(
    "/",
    summary="List import jobs",
    response_model=list[JobStatus],
)
async def list_jobs(
    limit: int = Query(50, ge=1, le=500, description="Maximum number of jobs to return"),
    status: JobState | None = Query(None, description="Filter by status"),
    db: AsyncSession = Depends(get_session),
    progress: ProgressTracker | None = Depends(get_progress_tracker),
) -> list[JobStatus]:
    """Return import jobs newest first, optionally filtered by status."""
    query = select(ImportJob)
    if status:
        query = query.where(ImportJob.status == status.value)
    query = query.order_by(ImportJob.created_at.desc()).limit(limit)

    jobs = (await db.scalars(query)).all()
    return [serialize_job(job, await _progress_for(progress, job.id)) for job in jobs]


@router.get(
    "/{job_id}",
    summary="Fetch job status, error text and latest progress",
    response_model=JobStatus,
)
async def get_job(
    job_id: str,
    db: AsyncSession = Depends(get_session),
    progress: ProgressTracker | None = Depends(get_progress_tracker),
) -> JobStatus:
    job = await db.get(ImportJob, job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return serialize_job(job, await _progress_for(progress, job_id))
