"""Dependency injection for FastAPI."""

from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from korea_lottery.db.engine import async_session_factory
from korea_lottery.services.cache import AnalysisCache


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session for request scope."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_analysis_cache(request: Request) -> AnalysisCache:
    return request.app.state.analysis_cache
