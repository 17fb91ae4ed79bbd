"""Shared base for the repository classes.

Each repository wraps one ORM model and an ``AsyncSession`` owned by the
caller. The sync engine may share a lock with its
``CommitManager`` so a flush never lands in the middle of a commit.
"""

import asyncio
from typing import Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ci_status_db.db.models import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Lookups, listing, deletes and locked flushes for one model.

    Usage:
        class BuildRepository(BaseRepository[Build]):
            def __init__(self, session: AsyncSession) -> None:
                super().__init__(session, Build)

            async def get_by_commit_sha(self, sha: str) -> Build | None:
                return await self._get_by_field("commit_sha", sha)
    """

    def __init__(
        self,
        session: AsyncSession,
        model_class: type[ModelT],
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        """Bind the repository to a session.

        Args:
            session: Async session; the caller commits and closes it
            model_class: ORM model handled by this repository
            write_lock: Lock held around flushes, shared with a CommitManager
        """
        self._session = session
        self._model_class = model_class
        self._write_lock = write_lock

    @property
    def session(self) -> AsyncSession:
        return self._session

    @property
    def write_lock(self) -> asyncio.Lock | None:
        """Lock held around flushes, if any."""
        return self._write_lock

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_by_id(self, id: int) -> ModelT | None:
        """Row with primary key ``id``, or None."""
        return await self._session.get(self._model_class, id)

    async def _get_by_field(self, field_name: str, value: object) -> ModelT | None:
        column = getattr(self._model_class, field_name)
        result = await self._session.execute(select(self._model_class).where(column == value))
        return result.scalar_one_or_none()

    async def get_all(self, limit: int | None = None) -> list[ModelT]:
        """Rows in primary-key order, at most ``limit`` of them."""
        stmt = select(self._model_class).order_by(self._model_class.id)  # type: ignore[attr-defined]
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def exists(self, id: int) -> bool:
        return await self.get_by_id(id) is not None

    async def count(self) -> int:
        result = await self._session.execute(
            select(func.count()).select_from(self._model_class)
        )
        return result.scalar() or 0

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def add(self, entity: ModelT) -> ModelT:
        self._session.add(entity)
        return entity

    async def delete(self, entity: ModelT) -> None:
        """Delete a row (and whatever its relationships cascade to)."""
        await self._session.delete(entity)
        await self.flush()

    async def flush(self) -> None:
        """Send pending inserts to the database without committing."""
        if self._write_lock is None:
            await self._session.flush()
            return
        async with self._write_lock:
            await self._session.flush()
