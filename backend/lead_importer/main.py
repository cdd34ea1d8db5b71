"""FastAPI application exposing read-only import job status."""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from lead_importer import __version__
from lead_importer.api.routers import health, jobs
from lead_importer.core.config import Settings, get_settings
from lead_importer.core.logging import configure_logging
from lead_importer.db.session import create_engine_from_settings, create_session_factory
from lead_importer.services.progress_tracker import ProgressTracker
from lead_importer.utils.redis_client import create_redis_client

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Instantiate the FastAPI app; DB and Redis clients live for the app's lifespan."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = create_engine_from_settings(settings)
        app.state.engine = engine
        app.state.session_factory = create_session_factory(engine)
        app.state.progress = (
            ProgressTracker(create_redis_client(settings.redis_url, decode_responses=True))
            if settings.redis_url
            else None
        )
        logger.info("Status API started")
        try:
            yield
        finally:
            if app.state.progress is not None:
                await app.state.progress.aclose()
            await engine.dispose()

    app = FastAPI(title=settings.app_name, version=__version__, lifespan=lifespan)
    app.include_router(health.router)
    app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])
    return app
