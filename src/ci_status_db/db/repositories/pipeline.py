"""Repository for Pipeline model CRUD operations."""

from __future__ import annotations

import asyncio
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ci_status_db.db.models import BuildStatus, Pipeline

from .base import BaseRepository

# Columns an update may touch
_UPDATABLE = ("name", "description", "repository", "branch", "status")


class PipelineRepository(BaseRepository[Pipeline]):
    """Repository for hand-maintained pipeline definitions."""

    def __init__(
        self,
        session: AsyncSession,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        super().__init__(session, Pipeline, write_lock)

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    async def get_by_name(self, name: str) -> Pipeline | None:
        """Get a pipeline by its unique name."""
        return await self._get_by_field("name", name)

    async def get_by_status(self, status: BuildStatus) -> list[Pipeline]:
        stmt = select(Pipeline).where(Pipeline.status == status).order_by(Pipeline.id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_repository(
        self,
        repository: str,
        branch: str | None = None,
    ) -> list[Pipeline]:
        """Get pipelines for a repository, optionally narrowed to one branch.

        Args:
            repository: Repository text exactly as stored
            branch: Branch name

        Returns:
            Pipelines in ID order
        """
        stmt = select(Pipeline).where(Pipeline.repository == repository)
        if branch is not None:
            stmt = stmt.where(Pipeline.branch == branch)
        result = await self._session.execute(stmt.order_by(Pipeline.id))
        return list(result.scalars().all())

    # -------------------------------------------------------------------------
    # Write Methods
    # -------------------------------------------------------------------------

    async def create(
        self,
        name: str,
        repository: str,
        branch: str,
        *,
        status: BuildStatus = BuildStatus.PENDING,
        description: str | None = None,
    ) -> Pipeline:
        """Insert a pipeline.

        Returns:
            Created Pipeline (flushed, has ID; not yet committed)
        """
        pipeline = Pipeline(
            name=name,
            repository=repository,
            branch=branch,
            status=status,
            description=description,
        )
        self.add(pipeline)
        await self.flush()
        # Timestamps are filled in by the database
        await self._session.refresh(pipeline)
        return pipeline

    async def update(self, pipeline: Pipeline, **changes: Any) -> Pipeline:
        """Apply ``changes`` to a pipeline and bump ``updated_at``.

        Args:
            pipeline: Pipeline to change
            **changes: New values keyed by column name

        Raises:
            ValueError: If a key is not an updatable column
        """
        unknown = set(changes) - set(_UPDATABLE)
        if unknown:
            raise ValueError(f"Cannot update pipeline fields: {', '.join(sorted(unknown))}")

        for key, value in changes.items():
            setattr(pipeline, key, value)
        await self.flush()
        await self._session.refresh(pipeline)
        return pipeline
