"""Bulk writes of normalized leads through the bulk_insert_leads procedure."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lead_importer.core.errors import BulkInsertError

logger = logging.getLogger(__name__)

BULK_INSERT_SQL = text("SELECT bulk_insert_leads(CAST(:json_data AS jsonb))")


class LeadSink(Protocol):
    async def bulk_insert(self, records: list[dict[str, Any]]) -> None: ...


class RpcLeadSink:
    """Calls `bulk_insert_leads(json_data)` once per batch.

    Each call commits on its own; a failing batch never rolls back earlier ones.
    Deduplication on retried jobs is up to the procedure itself.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def bulk_insert(self, records: list[dict[str, Any]]) -> None:
        if not records:
            return
        payload = json.dumps(records, ensure_ascii=False)
        async with self._session_factory() as session:
            try:
                await session.execute(BULK_INSERT_SQL, {"json_data": payload})
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                # Prefer the driver's message (the procedure's RAISE text) over the SQL dump
                detail = str(getattr(e, "orig", None) or e)
                logger.error(f"bulk_insert_leads rejected {len(records)} records: {detail}")
                raise BulkInsertError(detail) from e
