"""Engine and session handling for the build store.

The engine is created on first use from ``settings.database_url`` and
kept for the life of the process; ``dispose_engine()`` drops it so the
next call builds a fresh one (tests and ``cistatus db init`` rely on it).
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ci_status_db.config import get_settings
from ci_status_db.db.models import Base

_engine: AsyncEngine | None = None
_async_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Return the process-wide engine, creating it on first use."""
    global _engine
    if _engine is None:
        # SQLite locks the whole file; pooled connections lead to "database is locked"
        _engine = create_async_engine(
            get_settings().database_url,
            echo=False,
            poolclass=pool.NullPool,
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory bound to ``get_engine()``.

    A sweep opens one session per repository from this factory.
    """
    global _async_session_factory
    if _async_session_factory is None:
        _async_session_factory = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _async_session_factory


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Open a session, commit when the block exits cleanly, roll back otherwise.

    Usage:
        async with get_session() as session:
            builds = await BuildRepository(session).get_by_repository(1)
    """
    async with get_session_factory()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        await session.commit()


async def create_tables() -> None:
    """Create every table that does not exist yet."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_tables() -> None:
    """Drop every table. Test use only."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def dispose_engine() -> None:
    """Close the engine's connections and forget it."""
    global _engine, _async_session_factory
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _async_session_factory = None
