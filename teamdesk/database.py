"""Async SQLAlchemy engine, session factory and the FastAPI session dependency."""

import asyncio
import logging
from contextlib import AsyncExitStack
from typing import AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from .config import settings

logger = logging.getLogger(__name__)

engine = create_async_engine(
    settings.database_url,
    echo=settings.sql_echo,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_timeout=settings.db_pool_timeout,
    pool_pre_ping=True,
    pool_recycle=3600,
)

# Objects stay readable after commit; handlers refetch when they need fresh rows
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Declarative base shared by every TeamDesk model."""


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    One session per request.

    Commits on success, rolls back on exception. Handlers that need the
    committed rows before responding still commit themselves.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def warmup_connection_pool(connections: Optional[int] = None) -> int:
    """
    Open pool connections before the first request arrives.

    All connections are held at once so the pool really grows to the
    requested size, then released back to it.

    Returns:
        Number of connections that answered
    """
    target = min(connections or settings.db_warmup_connections, settings.db_pool_size)
    logger.info(f"Opening {target} database connections")

    async with AsyncExitStack() as stack:
        results = await asyncio.gather(
            *(stack.enter_async_context(engine.connect()) for _ in range(target)),
            return_exceptions=True,
        )
        ready = 0
        for result in results:
            if isinstance(result, Exception):
                logger.warning(f"Connection warmup failed: {result}")
                continue
            await result.execute(text("SELECT 1"))
            ready += 1

    logger.info(f"{ready}/{target} database connections ready")
    return ready
