"""Local filesystem storage, laid out as `<root>/<bucket>/<path>`."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from lead_importer.core.errors import FileFetchError

logger = logging.getLogger(__name__)


class LocalFileStorage:
    """Development stand-in for the hosted bucket."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()

    def _resolve(self, bucket: str, path: str) -> Path:
        bucket_dir = (self.root / bucket).resolve()
        target = (bucket_dir / path.lstrip("/")).resolve()
        if not target.is_relative_to(bucket_dir):
            raise FileFetchError(f"File download failed: path escapes bucket: {path}")
        return target

    async def download(self, bucket: str, path: str) -> bytes:
        target = self._resolve(bucket, path)
        try:
            content = await asyncio.to_thread(target.read_bytes)
        except FileNotFoundError as e:
            raise FileFetchError(f"File download failed: {bucket}/{path} not found") from e
        except OSError as e:
            raise FileFetchError(f"File download failed: {e}") from e
        logger.info(f"Read {len(content)} bytes from {target}")
        return content

    async def aclose(self) -> None:
        return None
