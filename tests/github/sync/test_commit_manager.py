"""Unit tests for CommitManager batch commit functionality."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select

from ci_status_db.db.models import Build, BuildStatus
from ci_status_db.db.repositories import BuildRepository
from ci_status_db.github.sync.commit_manager import CommitManager
from tests.factories import make_repository, make_sha


class TestCommitManagerRecordSuccess:
    """Test record_success tracking and batch triggering."""

    @pytest.mark.asyncio
    async def test_record_success_increments_count(self, db_session):
        manager = CommitManager(db_session, batch_size=5)

        await manager.record_success()

        assert manager.uncommitted_count == 1
        assert manager.total_committed == 0

    @pytest.mark.asyncio
    async def test_record_success_triggers_commit_at_batch_size(self, db_session):
        manager = CommitManager(db_session, batch_size=3)

        results = [await manager.record_success() for _ in range(3)]

        assert results == [0, 0, 3]
        assert manager.uncommitted_count == 0
        assert manager.total_committed == 3


class TestCommitManagerCommit:
    """Test explicit commit, finalize and rollback."""

    @pytest.mark.asyncio
    async def test_commit_noop_when_empty(self):
        session = AsyncMock()
        manager = CommitManager(session, batch_size=10)

        assert await manager.commit() == 0
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_finalize_commits_partial_batch(self, db_session):
        manager = CommitManager(db_session, batch_size=10)
        for _ in range(4):
            await manager.record_success()

        assert await manager.finalize() == 4
        assert manager.total_committed == 4

    @pytest.mark.asyncio
    async def test_commit_uses_write_lock(self):
        session = AsyncMock()
        lock = asyncio.Lock()
        manager = CommitManager(session, write_lock=lock, batch_size=1)

        async def assert_locked():
            assert lock.locked()

        session.commit.side_effect = assert_locked
        await manager.record_success()

        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rollback_keeps_committed_batches(self, session_factory):
        """Only the open batch is lost; committed batches stay durable."""
        async with session_factory() as session:
            repo = make_repository(session)
            await session.commit()

            build_repo = BuildRepository(session)
            manager = CommitManager(session, batch_size=2)
            for n in range(3):
                await build_repo.create(repo.id, make_sha(n), BuildStatus.SUCCESS)
                await manager.record_success()

            discarded = await manager.rollback()

        assert discarded == 1
        assert manager.total_committed == 2

        async with session_factory() as session:
            stored = await session.execute(select(func.count(Build.id)))
            assert stored.scalar() == 2
