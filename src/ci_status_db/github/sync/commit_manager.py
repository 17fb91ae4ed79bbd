"""Commit Manager - Batch commit boundaries for build inserts.

Instead of committing every build of a repository at the very end
(all-or-nothing), inserts are committed in batches. When a sync fails
part-way, only the open batch is rolled back and ``total_committed``
says exactly how many builds are durable.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from ci_status_db.logging import get_logger

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


class CommitManager:
    """Manages commit boundaries for one repository sync.

    Usage:
        commit_manager = CommitManager(session, batch_size=25)

        for run in runs:
            ...  # insert build
            await commit_manager.record_success()  # commits every 25

        await commit_manager.finalize()  # commit the partial batch

    On failure, call ``rollback()``; ``total_committed`` then holds the
    builds that survived.
    """

    def __init__(
        self,
        session: AsyncSession,
        write_lock: asyncio.Lock | None = None,
        batch_size: int = 25,
    ) -> None:
        """Initialize the commit manager.

        Args:
            session: Async SQLAlchemy session to commit on.
            write_lock: Optional lock shared with repositories so a commit
                        never interleaves with a flush.
            batch_size: Inserts per automatic commit.
        """
        self._session = session
        self._write_lock = write_lock
        self._batch_size = batch_size
        self._uncommitted_count = 0
        self._total_committed = 0

    @property
    def uncommitted_count(self) -> int:
        """Number of inserts pending commit."""
        return self._uncommitted_count

    @property
    def total_committed(self) -> int:
        """Total inserts committed across all batches."""
        return self._total_committed

    @property
    def batch_size(self) -> int:
        """Configured batch size."""
        return self._batch_size

    async def record_success(self) -> int:
        """Record one insert, committing when the batch is full.

        Returns:
            Number of inserts committed (0 unless a batch was flushed).
        """
        self._uncommitted_count += 1
        if self._uncommitted_count >= self._batch_size:
            return await self.commit()
        return 0

    async def commit(self) -> int:
        """Commit pending inserts.

        Returns:
            Number of inserts committed (0 if nothing to commit).
        """
        if self._uncommitted_count == 0:
            return 0

        if self._write_lock:
            async with self._write_lock:
                await self._session.commit()
        else:
            await self._session.commit()

        committed = self._uncommitted_count
        self._total_committed += committed
        self._uncommitted_count = 0

        logger.debug("Committed batch of {} builds (total: {})", committed, self._total_committed)
        return committed

    async def finalize(self) -> int:
        """Commit the remaining partial batch."""
        return await self.commit()

    async def rollback(self) -> int:
        """Discard uncommitted inserts.

        Returns:
            Number of inserts discarded.
        """
        discarded = self._uncommitted_count
        await self._session.rollback()
        self._uncommitted_count = 0
        if discarded:
            logger.warning("Rolled back {} uncommitted builds", discarded)
        return discarded
