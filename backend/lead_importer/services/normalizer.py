"""Map raw spreadsheet rows onto the canonical lead shape.

Normalization never fails: values that cannot be interpreted degrade to
empty strings or None so one malformed cell cannot sink a whole import.
"""

from __future__ import annotations

import math
import numbers
import re
import warnings
from datetime import date, datetime, time, timedelta, timezone
from typing import Any

import pandas as pd
from pydantic import BaseModel, ConfigDict

# Spreadsheet serial dates count days from 1899-12-30 (Lotus 1-2-3 leap year bug included)
SERIAL_EPOCH = datetime(1899, 12, 30, tzinfo=timezone.utc)
MS_PER_DAY = 86_400_000

REQUIRED_TEXT_FIELDS = (
    "lead_id",
    "full_name",
    "email",
    "phone_number",
    "city",
    "platform",
    "is_organic",
    "lead_status",
)
OPTIONAL_ID_FIELDS = (
    "ad_id",
    "ad_name",
    "adset_id",
    "adset_name",
    "campaign_id",
    "campaign_name",
    "form_id",
    "form_name",
    "page_id",
)
TIMESTAMP_FIELDS = ("timestamp_utc", "date", "created_time")

# Header spellings seen in lead-ad exports
HEADER_ALIASES = {
    "id": "lead_id",
    "name": "full_name",
    "email_address": "email",
    "phone": "phone_number",
    "status": "lead_status",
    "organic": "is_organic",
    "timestamp": "timestamp_utc",
    "utc_timestamp": "timestamp_utc",
    "date_utc": "timestamp_utc",
    "created_at": "created_time",
}

_SEPARATORS = re.compile(r"[\s\-.]+")
_NUMERIC_TEXT = re.compile(r"^-?\d+(\.\d+)?$")

# pandas resolves these against the clock, not the sheet
RELATIVE_DATE_WORDS = {"now", "today", "yesterday", "tomorrow"}
MIN_CALENDAR_YEAR = 1000


class LeadRecord(BaseModel):
    """Canonical lead row as sent to bulk_insert_leads."""

    model_config = ConfigDict(frozen=True)

    lead_id: str = ""
    full_name: str = ""
    email: str = ""
    phone_number: str = ""
    city: str = ""
    platform: str = ""
    is_organic: str = ""
    lead_status: str = ""
    ad_id: str | None = None
    ad_name: str | None = None
    adset_id: str | None = None
    adset_name: str | None = None
    campaign_id: str | None = None
    campaign_name: str | None = None
    form_id: str | None = None
    form_name: str | None = None
    page_id: str | None = None
    timestamp_utc: str | None = None
    date: str | None = None
    created_time: str | None = None


def header_key(header: Any) -> str:
    """Canonical field key for a header cell: "Full Name" -> "full_name"."""
    return _SEPARATORS.sub("_", str(header).strip().lower()).strip("_")


def _is_missing(value: Any) -> bool:
    if value is None or value is pd.NaT:
        return True
    return isinstance(value, float) and math.isnan(value)


def _iso_utc(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
        f".{value.microsecond // 1000:03d}Z"
    )


def _from_serial(serial: float) -> str | None:
    if not math.isfinite(serial):
        return None
    try:
        return _iso_utc(SERIAL_EPOCH + timedelta(milliseconds=serial * MS_PER_DAY))
    except OverflowError:
        return None


def _parse_calendar_text(text: str) -> str | None:
    if text.lower() in RELATIVE_DATE_WORDS:
        return None
    with warnings.catch_warnings():
        # "Could not infer format" warnings fire for every free-form date
        warnings.simplefilter("ignore")
        try:
            parsed = pd.to_datetime(text, utc=True)
        except (ValueError, TypeError, OverflowError):
            return None
    if pd.isna(parsed) or parsed.year < MIN_CALENDAR_YEAR:
        return None
    return _iso_utc(parsed.to_pydatetime())


def _parse_text_timestamp(text: str) -> str | None:
    parsed = _parse_calendar_text(text)
    if parsed is None and _NUMERIC_TEXT.match(text):
        # CSV cells arrive as text; a bare number is a serial day count
        return _from_serial(float(text))
    return parsed


def coerce_timestamp(value: Any) -> str | None:
    """Best-effort conversion of a cell to an ISO-8601 UTC timestamp.

    - None, blank text and NaN -> None
    - text -> parsed as a calendar date/time; bare numeric text that is not a
      date falls back to the serial rule; None when unparseable
    - numbers -> spreadsheet serial days since 1899-12-30 UTC
    - datetime/date cells -> converted directly
    - anything else -> None
    """
    if _is_missing(value):
        return None
    if isinstance(value, str):
        text = value.strip()
        return _parse_text_timestamp(text) if text else None
    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        return _from_serial(float(value))
    if isinstance(value, datetime):
        try:
            return _iso_utc(value)
        except (ValueError, OverflowError):
            return None
    if isinstance(value, date):
        return _iso_utc(datetime.combine(value, time(), tzinfo=timezone.utc))
    return None


def to_text(value: Any) -> str | None:
    """String form of a cell, or None when the cell is null."""
    if _is_missing(value):
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        # Spreadsheets store ids and phone numbers as floats
        return str(int(value))
    if isinstance(value, datetime):
        return coerce_timestamp(value)
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _index_row(raw_row: dict[str, Any]) -> dict[str, Any]:
    """Key row values by field name; exact field headers win over aliases."""
    exact: dict[str, Any] = {}
    aliased: dict[str, Any] = {}
    for header, value in raw_row.items():
        key = header_key(header)
        if key in HEADER_ALIASES:
            aliased.setdefault(HEADER_ALIASES[key], value)
        else:
            exact.setdefault(key, value)
    return {**aliased, **exact}


def normalize_row(raw_row: dict[str, Any]) -> LeadRecord:
    """Build a LeadRecord from one raw row. Never raises for any cell value."""
    values = _index_row(raw_row)
    fields: dict[str, str | None] = {}
    for name in REQUIRED_TEXT_FIELDS:
        fields[name] = to_text(values.get(name)) or ""
    for name in OPTIONAL_ID_FIELDS:
        fields[name] = to_text(values.get(name))
    for name in TIMESTAMP_FIELDS:
        fields[name] = coerce_timestamp(values.get(name))
    return LeadRecord(**fields)
