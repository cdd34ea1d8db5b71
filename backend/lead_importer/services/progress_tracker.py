"""Publish per-job progress snapshots to Redis for status polling."""

from __future__ import annotations

import json
import logging
from datetime import timedelta
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

PROGRESS_PREFIX = "jobs:progress:"
PROGRESS_TTL = timedelta(hours=24)


def _key(job_id: str) -> str:
    return f"{PROGRESS_PREFIX}{job_id}"


class ProgressTracker:
    """Best-effort progress store; Redis outages never interrupt an import."""

    def __init__(self, redis_client: Redis) -> None:
        self._redis = redis_client

    async def publish(
        self,
        job_id: str,
        progress: float,
        message: str | None = None,
        *,
        status: str | None = None,
        meta: dict[str, Any] | None = None,
    ) -> None:
        payload = {
            "job_id": job_id,
            "progress": max(0.0, min(progress, 1.0)),
            "message": message,
            "status": status,
            "meta": meta or {},
        }
        try:
            await self._redis.set(
                _key(job_id),
                json.dumps(payload),
                ex=int(PROGRESS_TTL.total_seconds()),
            )
        except RedisError as e:
            logger.debug(f"Could not publish progress for job {job_id}: {e}")

    async def fetch(self, job_id: str) -> dict[str, Any]:
        """Return the latest snapshot, or {} when missing or unreadable."""
        try:
            raw = await self._redis.get(_key(job_id))
        except RedisError:
            return {}
        if not raw:
            return {}
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return {}

    async def aclose(self) -> None:
        await self._redis.aclose()
