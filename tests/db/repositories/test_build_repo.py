"""Tests for BuildRepository."""

from datetime import timedelta

import pytest

from ci_status_db.db.models import BuildStatus
from ci_status_db.db.repositories import BuildRepository
from tests.conftest import JAN_15_DONE, JAN_15_STARTED
from tests.factories import make_build, make_repository, make_sha


@pytest.fixture
async def repository(db_session):
    repo = make_repository(db_session)
    await db_session.flush()
    return repo


class TestBuildRepositoryQueries:
    """Test lookup methods."""

    @pytest.mark.asyncio
    async def test_get_by_commit_sha(self, db_session, repository):
        build = make_build(db_session, repository, commit_sha=make_sha(1))
        await db_session.flush()

        assert await BuildRepository(db_session).get_by_commit_sha(make_sha(1)) is build

    @pytest.mark.asyncio
    async def test_get_by_commit_sha_missing(self, db_session):
        assert await BuildRepository(db_session).get_by_commit_sha(make_sha(404)) is None

    @pytest.mark.asyncio
    async def test_get_by_repository_newest_first(self, db_session, repository):
        other = make_repository(db_session, name="other")
        make_build(db_session, repository, commit_sha=make_sha(1), started_at=JAN_15_STARTED)
        make_build(
            db_session,
            repository,
            commit_sha=make_sha(2),
            started_at=JAN_15_STARTED + timedelta(hours=1),
        )
        make_build(db_session, repository, commit_sha=make_sha(3), started_at=None)
        make_build(db_session, other, commit_sha=make_sha(4), started_at=JAN_15_STARTED)
        await db_session.flush()

        builds = await BuildRepository(db_session).get_by_repository(repository.id)

        assert [b.commit_sha for b in builds] == [make_sha(2), make_sha(1), make_sha(3)]

    @pytest.mark.asyncio
    async def test_get_by_repository_limit(self, db_session, repository):
        for n in range(5):
            make_build(
                db_session,
                repository,
                commit_sha=make_sha(n),
                started_at=JAN_15_STARTED + timedelta(minutes=n),
            )
        await db_session.flush()

        builds = await BuildRepository(db_session).get_by_repository(repository.id, limit=2)

        assert [b.commit_sha for b in builds] == [make_sha(4), make_sha(3)]

    @pytest.mark.asyncio
    async def test_get_by_status(self, db_session, repository):
        other = make_repository(db_session, name="other")
        make_build(db_session, repository, commit_sha=make_sha(1), status=BuildStatus.FAILED)
        make_build(db_session, repository, commit_sha=make_sha(2), status=BuildStatus.SUCCESS)
        make_build(db_session, other, commit_sha=make_sha(3), status=BuildStatus.FAILED)
        await db_session.flush()
        build_repo = BuildRepository(db_session)

        all_failed = await build_repo.get_by_status(BuildStatus.FAILED)
        repo_failed = await build_repo.get_by_status(BuildStatus.FAILED, repository_id=other.id)

        assert [b.commit_sha for b in all_failed] == [make_sha(3), make_sha(1)]
        assert [b.commit_sha for b in repo_failed] == [make_sha(3)]

    @pytest.mark.asyncio
    async def test_get_by_status_newest_first_with_limit(self, db_session, repository):
        for n in range(4):
            make_build(
                db_session,
                repository,
                commit_sha=make_sha(n),
                status=BuildStatus.FAILED,
                started_at=JAN_15_STARTED + timedelta(minutes=n),
            )
        make_build(db_session, repository, commit_sha=make_sha(9), status=BuildStatus.SUCCESS)
        await db_session.flush()

        builds = await BuildRepository(db_session).get_by_status(BuildStatus.FAILED, limit=2)

        assert [b.commit_sha for b in builds] == [make_sha(3), make_sha(2)]

    @pytest.mark.asyncio
    async def test_get_recent_spans_repositories(self, db_session, repository):
        other = make_repository(db_session, name="other")
        make_build(db_session, repository, commit_sha=make_sha(1), started_at=JAN_15_STARTED)
        make_build(db_session, other, commit_sha=make_sha(2), started_at=JAN_15_DONE)
        make_build(db_session, other, commit_sha=make_sha(3), started_at=None)
        await db_session.flush()
        build_repo = BuildRepository(db_session)

        builds = await build_repo.get_recent()
        newest = await build_repo.get_recent(limit=1)

        assert [b.commit_sha for b in builds] == [make_sha(2), make_sha(1), make_sha(3)]
        assert [b.commit_sha for b in newest] == [make_sha(2)]

    @pytest.mark.asyncio
    async def test_count_by_repository(self, db_session, repository):
        other = make_repository(db_session, name="other")
        make_build(db_session, repository)
        make_build(db_session, repository)
        make_build(db_session, other)
        await db_session.flush()

        assert await BuildRepository(db_session).count_by_repository(repository.id) == 2

    @pytest.mark.asyncio
    async def test_count_by_status(self, db_session, repository):
        for n, status in enumerate(
            [BuildStatus.SUCCESS, BuildStatus.SUCCESS, BuildStatus.CANCELLED]
        ):
            make_build(db_session, repository, commit_sha=make_sha(n), status=status)
        await db_session.flush()
        build_repo = BuildRepository(db_session)

        assert await build_repo.count_by_status(repository.id, BuildStatus.SUCCESS) == 2
        assert await build_repo.count_by_status(repository.id, BuildStatus.PENDING) == 0


class TestBuildRepositoryCreate:
    """Test create method."""

    @pytest.mark.asyncio
    async def test_create(self, db_session, repository):
        build = await BuildRepository(db_session).create(
            repository.id,
            make_sha(9),
            BuildStatus.SUCCESS,
            started_at=JAN_15_STARTED,
            completed_at=JAN_15_DONE,
        )

        assert build.id is not None
        assert build.repository_id == repository.id
        assert build.status == BuildStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_create_without_times(self, db_session, repository):
        build = await BuildRepository(db_session).create(
            repository.id, make_sha(9), BuildStatus.PENDING
        )

        assert build.started_at is None
        assert build.completed_at is None


class TestBuildRepositoryUpdateDelete:
    """Test manual corrections."""

    @pytest.mark.asyncio
    async def test_update_only_given_fields(self, db_session, repository):
        build = make_build(
            db_session,
            repository,
            commit_sha=make_sha(1),
            status=BuildStatus.IN_PROGRESS,
            started_at=JAN_15_STARTED,
        )
        await db_session.flush()

        updated = await BuildRepository(db_session).update(
            build, status=BuildStatus.FAILED, completed_at=JAN_15_DONE
        )

        assert updated is build
        assert build.status == BuildStatus.FAILED
        assert build.completed_at == JAN_15_DONE
        assert build.commit_sha == make_sha(1)
        assert build.started_at == JAN_15_STARTED

    @pytest.mark.asyncio
    async def test_update_without_changes_keeps_build(self, db_session, repository):
        build = make_build(db_session, repository, commit_sha=make_sha(1))
        await db_session.flush()

        await BuildRepository(db_session).update(build)

        assert build.status == BuildStatus.SUCCESS
        assert build.commit_sha == make_sha(1)

    @pytest.mark.asyncio
    async def test_delete(self, db_session, repository):
        build = make_build(db_session, repository, commit_sha=make_sha(1))
        await db_session.flush()
        build_repo = BuildRepository(db_session)

        await build_repo.delete(build)

        assert await build_repo.get_by_commit_sha(make_sha(1)) is None
        assert await build_repo.count() == 0
