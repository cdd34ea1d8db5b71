"""
Import Worker - Main Entry Point

Polls import_jobs for pending uploads and imports them into the leads store.

Usage:
    python -m lead_importer.workers [--once] [--verbose]

Options:
    --once       Run a single claim/process iteration and exit
    --verbose    Enable debug logging

Exit Codes:
    0: Stopped normally (signal, --once, or WORKER_ENABLED=false)
    2: Fatal configuration error
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys

from lead_importer.core.config import Settings, get_settings
from lead_importer.core.logging import configure_logging
from lead_importer.db.job_store import SqlJobStore
from lead_importer.db.lead_sink import RpcLeadSink
from lead_importer.db.session import create_engine_from_settings, create_session_factory
from lead_importer.services.job_processor import JobProcessor
from lead_importer.services.progress_tracker import ProgressTracker
from lead_importer.storage.local_storage import LocalFileStorage
from lead_importer.storage.supabase_storage import SupabaseStorage
from lead_importer.utils.redis_client import create_redis_client
from lead_importer.workers.scheduler import Scheduler

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    pass


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Import uploaded lead spreadsheets from the import_jobs queue",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single iteration and exit",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def build_storage(settings: Settings) -> LocalFileStorage | SupabaseStorage:
    if settings.storage_backend == "local":
        return LocalFileStorage(settings.local_storage_dir)
    if not settings.supabase_url or not settings.supabase_service_role_key:
        raise ConfigurationError(
            "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required for the supabase storage backend"
        )
    return SupabaseStorage(
        settings.supabase_url,
        settings.supabase_service_role_key,
        timeout=settings.http_timeout,
    )


def install_signal_handlers(scheduler: Scheduler) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, scheduler.stop)
        except NotImplementedError:  # pragma: no cover - Windows event loops
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(scheduler.stop))


async def run_worker(settings: Settings, once: bool = False) -> None:
    if not settings.worker_enabled:
        logger.info("Import worker disabled (WORKER_ENABLED=false); exiting")
        return

    storage = build_storage(settings)
    engine = create_engine_from_settings(settings)
    session_factory = create_session_factory(engine)
    job_store = SqlJobStore(session_factory)
    progress = (
        ProgressTracker(create_redis_client(settings.redis_url, decode_responses=True))
        if settings.redis_url
        else None
    )
    processor = JobProcessor(
        job_store,
        storage,
        RpcLeadSink(session_factory),
        settings,
        progress=progress,
    )
    scheduler = Scheduler(job_store, processor, settings, max_iterations=1 if once else None)
    install_signal_handlers(scheduler)

    try:
        await scheduler.run()
    finally:
        await storage.aclose()
        if progress is not None:
            await progress.aclose()
        await engine.dispose()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    configure_logging("DEBUG" if args.verbose else settings.log_level)

    try:
        asyncio.run(run_worker(settings, once=args.once))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
