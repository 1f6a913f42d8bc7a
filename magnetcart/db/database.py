"""
Async database engine and sessions.

The engine is built on first use from `settings.database_url`, so importing
the app does not open a connection pool. Request handlers get a session per
request through `get_session`; the request's writes are committed together
when the handler returns.
"""

from collections.abc import AsyncGenerator
from functools import lru_cache

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from magnetcart.config import settings
from magnetcart.models.db import Base


@lru_cache(maxsize=1)
def get_engine() -> AsyncEngine:
    """The process-wide engine for the configured database."""
    return create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_pre_ping=True,
    )


@lru_cache(maxsize=1)
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding one session per request.

    Commits after the handler returns; a database error rolls the whole
    request back.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create missing tables. Run once at startup."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

