"""Database models package."""
from lead_importer.db.models.import_job import ImportJob, JobState

__all__ = ["ImportJob", "JobState"]
