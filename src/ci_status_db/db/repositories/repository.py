"""Repository for the Repository model."""

import asyncio

from sqlalchemy.ext.asyncio import AsyncSession

from ci_status_db.db.models import Repository

from .base import BaseRepository


class RepositoryRepository(BaseRepository[Repository]):
    """Repository for locally registered source repositories.

    Registration is an administrative action; the sync engine only reads.
    """

    def __init__(
        self,
        session: AsyncSession,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        super().__init__(session, Repository, write_lock)

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    async def get_by_name(self, name: str) -> Repository | None:
        """Get a repository by its unique name.

        Args:
            name: Registered repository name

        Returns:
            Repository or None if not found
        """
        return await self._get_by_field("name", name)

    # -------------------------------------------------------------------------
    # Create Methods
    # -------------------------------------------------------------------------

    async def create(self, name: str, github_url: str) -> Repository:
        """Register a new repository.

        Args:
            name: Unique display name
            github_url: Canonical GitHub URL (owner/repo are parsed from it
                when the scheduler has no configured repository list)

        Returns:
            Created repository (flushed, has ID; not yet committed)
        """
        repo = Repository(name=name, github_url=github_url)
        self.add(repo)
        await self.flush()
        return repo

    async def get_or_create(self, name: str, github_url: str) -> tuple[Repository, bool]:
        """Get an existing repository by name or register it.

        Returns:
            Tuple of (repository, created) where created is True if new
        """
        existing = await self.get_by_name(name)
        if existing is not None:
            return existing, False

        repo = await self.create(name, github_url)
        return repo, True
