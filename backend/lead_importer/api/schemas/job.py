"""Import job status payloads."""

from datetime import datetime
from pydantic import BaseModel, Field


class JobStatus(BaseModel):
    id: str
    file_path: str
    status: str = Field(..., description="pending|processing|done|failed")
    progress: float | None = Field(None, description="0-1 range for UI progress bars")
    message: str | None = None
    total_rows: int | None = None
    processed_rows: int | None = None
    error: str | None = None
    created_at: datetime | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
