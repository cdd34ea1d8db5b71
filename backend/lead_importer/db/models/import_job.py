"""Track uploaded lead spreadsheets waiting for, or going through, import."""

import enum
import uuid

from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.sql import func
from sqlalchemy.types import DateTime

from lead_importer.db.base import Base


class JobState(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"


class ImportJob(Base):
    __tablename__ = "import_jobs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    file_path = Column(Text, nullable=False)
    status = Column(String(32), nullable=False, default=JobState.PENDING.value, index=True)
    error = Column(Text)
    total_rows = Column(Integer, default=0)
    processed_rows = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    started_at = Column(DateTime(timezone=True))
    finished_at = Column(DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"<ImportJob id={self.id} status={self.status} file_path={self.file_path!r}>"
