"""Async database engine and session factory."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from teams_channel.config import get_settings
from teams_channel.database.models import Base

logger = logging.getLogger(__name__)
settings = get_settings()

engine = create_async_engine(settings.database_url, echo=settings.database_echo)

AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db() -> None:
    """Create tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.debug(f"Database tables ensured on {engine.url.render_as_string(hide_password=True)}")


async def close_db() -> None:
    """Dispose of the engine's connection pool."""
    await engine.dispose()
