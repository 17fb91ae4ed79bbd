"""Pytest configuration and shared fixtures.

Usage Guide:
- For ORM model tests: import factories from tests.factories
- For GitHub API payloads: use make_workflow_run / make_runs_page
- For sync tests needing per-repository sessions: use session_factory
"""

from datetime import UTC, datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ci_status_db.config import get_settings
from ci_status_db.db.models import Base

# -----------------------------------------------------------------------------
# Test Timeline Constants
#
# Define a consistent "test epoch" for deterministic date matching across tests.
# -----------------------------------------------------------------------------

JAN_15 = datetime(2024, 1, 15, 10, 0, 0, tzinfo=UTC)  # Run created
JAN_15_STARTED = datetime(2024, 1, 15, 10, 1, 0, tzinfo=UTC)  # Run started
JAN_15_DONE = datetime(2024, 1, 15, 10, 9, 0, tzinfo=UTC)  # Run updated/finished
JAN_16 = datetime(2024, 1, 16, 14, 0, 0, tzinfo=UTC)

# ISO 8601 strings (for GitHub API mocks)
JAN_15_ISO = "2024-01-15T10:00:00Z"
JAN_15_STARTED_ISO = "2024-01-15T10:01:00Z"
JAN_15_DONE_ISO = "2024-01-15T10:09:00Z"
JAN_16_ISO = "2024-01-16T14:00:00Z"


# -----------------------------------------------------------------------------
# Settings
# -----------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Drop cached settings so monkeypatched env vars take effect."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# -----------------------------------------------------------------------------
# Database Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
async def test_engine():
    """Create an in-memory SQLite engine for tests.

    Each test gets a fresh database with all tables created. StaticPool
    keeps one connection so every session sees the same database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db_session(session_factory):
    """Create an async session with auto-rollback.

    Uncommitted changes are rolled back after each test.
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


# -----------------------------------------------------------------------------
# Utility Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def utc_now() -> datetime:
    """Current UTC datetime for tests."""
    return datetime.now(UTC)
