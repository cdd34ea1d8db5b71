"""Abstraction over object storage holding uploaded spreadsheets."""

from __future__ import annotations

from typing import Protocol


class FileStorage(Protocol):
    async def download(self, bucket: str, path: str) -> bytes:
        """Return the object's bytes or raise FileFetchError."""
        ...
