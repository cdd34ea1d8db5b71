"""Decode uploaded spreadsheets into raw row dictionaries."""

from __future__ import annotations

import io
import logging
from pathlib import PurePosixPath
from typing import Any

import pandas as pd

from lead_importer.core.errors import SheetDecodeError

logger = logging.getLogger(__name__)

CSV_SUFFIXES = {".csv", ".txt"}


def _frame_to_rows(df: pd.DataFrame) -> list[dict[str, Any]]:
    """Convert a frame to row dicts; blank cells become "" rather than NaN."""
    df = df.astype(object).where(pd.notna(df), "")
    df.columns = [str(c).strip() for c in df.columns]
    return df.to_dict(orient="records")


def _read_csv(buffer: io.BytesIO) -> pd.DataFrame:
    return pd.read_csv(
        buffer,
        dtype=str,
        keep_default_na=False,
        encoding="utf-8-sig",
    )


def _read_workbook(buffer: io.BytesIO) -> pd.DataFrame:
    # pandas sniffs the container (xlsx, xls, ods) from the bytes, not the name.
    # sheet_name=0: first sheet only, matching what uploaders see on open
    return pd.read_excel(buffer, sheet_name=0, dtype=object)


def read_rows(content: bytes, file_name: str = "") -> list[dict[str, Any]]:
    """Parse the first sheet of a workbook (or a CSV file) into raw rows.

    The first row supplies the field names. Every row carries every header
    key; empty cells map to "".

    Raises:
        SheetDecodeError: the bytes are not a readable spreadsheet.
    """
    suffix = PurePosixPath(file_name).suffix.lower()
    buffer = io.BytesIO(content)
    is_csv = suffix in CSV_SUFFIXES
    try:
        df = _read_csv(buffer) if is_csv else _read_workbook(buffer)
    except pd.errors.EmptyDataError:
        logger.warning(f"{file_name or 'upload'} has no header row; nothing to import")
        return []
    except Exception as e:
        # openpyxl, xlrd and odfpy each raise their own error types on bad input
        raise SheetDecodeError(f"Could not read spreadsheet {file_name!r}: {e}") from e

    # Fully blank rows are layout, not data
    df = df.dropna(how="all")
    if is_csv and len(df.columns):
        df = df[(df != "").any(axis=1)]
    return _frame_to_rows(df)
