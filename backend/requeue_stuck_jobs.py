#!/usr/bin/env python3
"""Return import jobs stuck in 'processing' (worker died mid-job) to 'pending'.

Usage:
    python requeue_stuck_jobs.py --older-than 60

Requeued jobs are imported again from the first row; bulk_insert_leads must
deduplicate rows that were committed before the crash.
"""

import argparse
import asyncio
from datetime import timedelta

from lead_importer.core.config import get_settings
from lead_importer.db.job_store import SqlJobStore
from lead_importer.db.session import create_engine_from_settings, create_session_factory


async def requeue(older_than_minutes: float) -> int:
    engine = create_engine_from_settings(get_settings())
    try:
        store = SqlJobStore(create_session_factory(engine))
        return await store.requeue_stale(timedelta(minutes=older_than_minutes))
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--older-than",
        type=float,
        default=60,
        help="Minutes since the job was claimed (default: 60)",
    )
    args = parser.parse_args()

    count = asyncio.run(requeue(args.older_than))
    print(f"Requeued {count} job(s) stuck in processing")
