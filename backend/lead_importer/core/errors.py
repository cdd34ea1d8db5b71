"""Failures that end a single import job."""

from __future__ import annotations


class ImportFailure(Exception):
    """Base for errors that mark the current job as failed.

    The string form is stored on the job row, so keep messages operator-readable.
    """


class FileFetchError(ImportFailure):
    """The uploaded file could not be downloaded from storage."""


class SheetDecodeError(ImportFailure):
    """The downloaded bytes are not a readable spreadsheet."""


class BulkInsertError(ImportFailure):
    """A bulk write was rejected by the leads store."""

    def __init__(
        self,
        message: str,
        *,
        batch_number: int | None = None,
        committed_rows: int = 0,
    ) -> None:
        super().__init__(message)
        self.batch_number = batch_number
        self.committed_rows = committed_rows
