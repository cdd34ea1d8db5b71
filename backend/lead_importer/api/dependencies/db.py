"""Request-scoped dependencies backed by resources created at app startup."""

from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from lead_importer.services.progress_tracker import ProgressTracker


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields a read-only async session."""
    async with request.app.state.session_factory() as session:
        yield session


def get_progress_tracker(request: Request) -> ProgressTracker | None:
    return request.app.state.progress
