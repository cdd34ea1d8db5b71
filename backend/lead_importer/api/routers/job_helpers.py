"""Shared helpers for shaping job responses."""
from __future__ import annotations

from lead_importer.api.schemas.job import JobStatus
from lead_importer.db.models.import_job import ImportJob, JobState


def serialize_job(job: ImportJob, progress_payload: dict | None) -> JobStatus:
    """Combine DB state + cached progress snapshot into a response schema."""
    progress_payload = progress_payload or {}

    calculated_progress = progress_payload.get("progress")
    if calculated_progress is None:
        if job.status == JobState.DONE.value:
            calculated_progress = 1.0
        elif job.total_rows:
            calculated_progress = (job.processed_rows or 0) / job.total_rows

    message = progress_payload.get("message")
    if not message and job.status == JobState.PROCESSING.value:
        total_display = job.total_rows if job.total_rows else "?"
        message = f"Processed {job.processed_rows or 0}/{total_display} rows"

    return JobStatus(
        id=job.id,
        file_path=job.file_path,
        # The row is authoritative; the snapshot can lag a finalize by one write
        status=job.status,
        progress=calculated_progress,
        message=message,
        total_rows=job.total_rows,
        processed_rows=job.processed_rows,
        error=job.error,
        created_at=job.created_at,
        started_at=job.started_at,
        finished_at=job.finished_at,
    )
