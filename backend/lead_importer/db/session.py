"""Async engine and session factory configuration."""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from lead_importer.core.config import Settings


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Build the async engine used by the worker and the status API.

    The worker holds connections for the lifetime of the process, so stale
    connections are detected with pre-ping and recycled every 30 minutes.
    """
    return create_async_engine(
        settings.database_url,
        echo=False,
        pool_pre_ping=True,  # Test connections before using
        pool_recycle=1800,  # Recycle connections after 30 minutes
        pool_size=5,
        max_overflow=5,
        connect_args={
            "connect_timeout": 10,  # 10 second connection timeout
            "keepalives": 1,
            "keepalives_idle": 30,
            "keepalives_interval": 10,
            "keepalives_count": 5,
        },
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False keeps claimed jobs readable after the claim commits
    return async_sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

