"""Repository for Build model CRUD operations."""

from __future__ import annotations

import asyncio
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ci_status_db.db.models import Build, BuildStatus

from .base import BaseRepository

# Builds that never started sort last
_NEWEST_FIRST = (Build.started_at.desc().nulls_last(), Build.id.desc())


class BuildRepository(BaseRepository[Build]):
    """Repository for Build entities.

    Builds are insert-only from the sync engine's point of view:
    ``commit_sha`` is the natural key and an existing build is never
    overwritten by a later sync.
    """

    def __init__(
        self,
        session: AsyncSession,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        super().__init__(session, Build, write_lock)

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    async def get_by_commit_sha(self, commit_sha: str) -> Build | None:
        """Get the build recorded for a commit.

        Args:
            commit_sha: Full commit SHA

        Returns:
            Build or None if the commit has not been seen
        """
        return await self._get_by_field("commit_sha", commit_sha)

    async def get_by_repository(
        self,
        repository_id: int,
        limit: int | None = None,
    ) -> list[Build]:
        """Get builds for a repository, most recently started first.

        Builds that never started sort last.

        Args:
            repository_id: Repository ID
            limit: Maximum number of builds to return

        Returns:
            List of builds
        """
        stmt = (
            select(Build)
            .where(Build.repository_id == repository_id)
            .order_by(*_NEWEST_FIRST)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def get_recent(self, limit: int | None = None) -> list[Build]:
        """Get builds across all repositories, most recently started first."""
        stmt = select(Build).order_by(*_NEWEST_FIRST)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_status(
        self,
        status: BuildStatus,
        repository_id: int | None = None,
        limit: int | None = None,
    ) -> list[Build]:
        """Get builds in a given status, most recently started first.

        Args:
            status: Status to match
            repository_id: Only builds of this repository
            limit: Maximum number of builds to return
        """
        stmt = select(Build).where(Build.status == status)
        if repository_id is not None:
            stmt = stmt.where(Build.repository_id == repository_id)
        stmt = stmt.order_by(*_NEWEST_FIRST)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def count_by_repository(self, repository_id: int) -> int:
        """Count all of a repository's builds."""
        stmt = select(func.count(Build.id)).where(Build.repository_id == repository_id)
        result = await self._session.execute(stmt)
        return result.scalar() or 0

    async def count_by_status(self, repository_id: int, status: BuildStatus) -> int:
        """Count a repository's builds in one status."""
        stmt = select(func.count(Build.id)).where(
            Build.repository_id == repository_id,
            Build.status == status,
        )
        result = await self._session.execute(stmt)
        return result.scalar() or 0

    # -------------------------------------------------------------------------
    # Create Methods
    # -------------------------------------------------------------------------

    async def create(
        self,
        repository_id: int,
        commit_sha: str,
        status: BuildStatus,
        *,
        started_at: datetime | None = None,
        completed_at: datetime | None = None,
    ) -> Build:
        """Insert a build.

        Args:
            repository_id: Owning repository ID
            commit_sha: Commit the build ran against (must be unseen)
            status: Mapped build status
            started_at: When the run started (None if not started yet)
            completed_at: Last update time reported by GitHub

        Returns:
            Created Build (flushed, has ID; not yet committed)
        """
        build = Build(
            repository_id=repository_id,
            commit_sha=commit_sha,
            status=status,
            started_at=started_at,
            completed_at=completed_at,
        )
        self.add(build)
        await self.flush()
        return build

    # -------------------------------------------------------------------------
    # Update Methods
    # -------------------------------------------------------------------------

    async def update(
        self,
        build: Build,
        *,
        status: BuildStatus | None = None,
        commit_sha: str | None = None,
        started_at: datetime | None = None,
        completed_at: datetime | None = None,
    ) -> Build:
        """Overwrite the given fields of a build; None leaves a field as is.

        The sync engine never calls this. It serves manual corrections.

        Returns:
            The updated build (flushed, not yet committed)
        """
        if status is not None:
            build.status = status
        if commit_sha is not None:
            build.commit_sha = commit_sha
        if started_at is not None:
            build.started_at = started_at
        if completed_at is not None:
            build.completed_at = completed_at
        await self.flush()
        return build
