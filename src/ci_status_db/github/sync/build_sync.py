"""Build Sync Service - Turn one repository's workflow runs into builds.

Fetches the most recent page of workflow runs from GitHub and records a
Build for every commit that has none yet. Existing builds are never
touched, so re-running a sync over an unchanged run list inserts nothing.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from ci_status_db.config import get_settings
from ci_status_db.github.exceptions import GitHubClientError
from ci_status_db.logging import bind_repo

from .commit_manager import CommitManager
from .enums import SyncErrorKind
from .results import BuildSyncResult
from .status_mapper import map_status

if TYPE_CHECKING:
    from ci_status_db.db.repositories import BuildRepository, RepositoryRepository
    from ci_status_db.github.client import GitHubClient


class RepositoryNotFoundError(LookupError):
    """Raised when a sync targets a repository ID that is not registered."""

    def __init__(self, repository_id: int) -> None:
        super().__init__(f"Repository not found with id: {repository_id}")
        self.repository_id = repository_id


class RepositoryLocks:
    """One asyncio lock per local repository ID.

    Two syncs of the same repository in one process run one after the
    other; syncs of different repositories do not block each other.
    The unique ``builds.commit_sha`` constraint covers other processes.
    """

    def __init__(self) -> None:
        self._locks: dict[int, asyncio.Lock] = {}

    def for_repository(self, repository_id: int) -> asyncio.Lock:
        """Get (or create) the lock for a repository."""
        lock = self._locks.get(repository_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[repository_id] = lock
        return lock


class BuildSyncService:
    """Syncs GitHub workflow runs for a single repository into builds.

    Usage:
        async with GitHubClient() as client, get_session() as session:
            service = BuildSyncService(
                client=client,
                repo_repository=RepositoryRepository(session),
                build_repository=BuildRepository(session),
            )
            result = await service.sync_repository("acme", "widgets", repository_id=1)
            print(result.message)
    """

    def __init__(
        self,
        client: GitHubClient,
        repo_repository: RepositoryRepository,
        build_repository: BuildRepository,
        *,
        runs_per_sync: int | None = None,
        commit_batch_size: int | None = None,
        locks: RepositoryLocks | None = None,
    ) -> None:
        """Initialize the sync service.

        Args:
            client: GitHub API client
            repo_repository: Repository for Repository model
            build_repository: Repository for Build model
            runs_per_sync: Runs to fetch per sync. Defaults to settings.sync.runs_per_sync.
            commit_batch_size: Builds per commit. Defaults to settings.sync.commit_batch_size.
            locks: Lock registry shared with other services in this process.
                   A private registry is used when omitted.
        """
        settings = get_settings()
        self._client = client
        self._repo_repository = repo_repository
        self._build_repository = build_repository
        self._runs_per_sync = runs_per_sync or settings.sync.runs_per_sync
        self._commit_batch_size = commit_batch_size or settings.sync.commit_batch_size
        self._locks = locks or RepositoryLocks()

    async def sync_repository(
        self,
        owner: str,
        repo: str,
        repository_id: int,
        *,
        dry_run: bool = False,
    ) -> BuildSyncResult:
        """Sync recent workflow runs of ``owner/repo`` into ``repository_id``.

        Failures are returned, not raised; see ``BuildSyncResult.error_kind``.

        Args:
            owner: GitHub repository owner
            repo: GitHub repository name
            repository_id: Local repository the builds belong to
            dry_run: Look everything up but write nothing

        Returns:
            BuildSyncResult with the number of builds inserted
        """
        async with self._locks.for_repository(repository_id):
            return await self._sync(owner, repo, repository_id, dry_run=dry_run)

    async def _sync(
        self,
        owner: str,
        repo: str,
        repository_id: int,
        *,
        dry_run: bool,
    ) -> BuildSyncResult:
        full_name = f"{owner}/{repo}"
        repo_logger = bind_repo(owner, repo)
        commit_manager = CommitManager(
            self._build_repository.session,
            write_lock=self._build_repository.write_lock,
            batch_size=self._commit_batch_size,
        )

        repository = await self._repo_repository.get_by_id(repository_id)
        if repository is None:
            repo_logger.warning("Repository {} is not registered, skipping sync", repository_id)
            return BuildSyncResult.from_error(
                full_name,
                repository_id,
                RepositoryNotFoundError(repository_id),
                SyncErrorKind.NOT_FOUND,
            )

        try:
            page = await self._client.list_workflow_runs(
                owner,
                repo,
                per_page=self._runs_per_sync,
            )
        except GitHubClientError as e:
            kind = (
                SyncErrorKind.REMOTE_CLASSIFIED
                if e.is_classified
                else SyncErrorKind.REMOTE_UNCLASSIFIED
            )
            repo_logger.error("Failed to fetch workflow runs: {}", e.message)
            return BuildSyncResult.from_error(full_name, repository_id, e, kind)
        except Exception as e:
            repo_logger.exception("Unexpected error fetching workflow runs")
            return BuildSyncResult.from_error(
                full_name, repository_id, e, SyncErrorKind.UNEXPECTED
            )

        result = BuildSyncResult(
            repository=full_name,
            repository_id=repository_id,
            fetched=len(page.workflow_runs),
            dry_run=dry_run,
        )
        seen: set[str] = set()

        try:
            for run in page.workflow_runs:
                if run.head_sha in seen:
                    result.skipped_existing += 1
                    continue
                seen.add(run.head_sha)

                existing = await self._build_repository.get_by_commit_sha(run.head_sha)
                if existing is not None:
                    result.skipped_existing += 1
                    continue

                status = map_status(run.status, run.conclusion)
                if dry_run:
                    repo_logger.debug("Would insert build {} ({})", run.head_sha[:7], status.value)
                    result.inserted += 1
                    continue

                await self._build_repository.create(
                    repository.id,
                    run.head_sha,
                    status,
                    started_at=run.run_started_at,
                    completed_at=run.updated_at,
                )
                await commit_manager.record_success()

            if not dry_run:
                await commit_manager.finalize()
                result.inserted = commit_manager.total_committed

        except SQLAlchemyError as e:
            await commit_manager.rollback()
            repo_logger.error(
                "Database error after {} committed builds: {}",
                commit_manager.total_committed,
                e,
            )
            return BuildSyncResult.from_error(
                full_name,
                repository_id,
                e,
                SyncErrorKind.STORE,
                inserted=commit_manager.total_committed,
            )
        except Exception as e:
            await commit_manager.rollback()
            repo_logger.exception("Unexpected error during sync")
            return BuildSyncResult.from_error(
                full_name,
                repository_id,
                e,
                SyncErrorKind.UNEXPECTED,
                inserted=commit_manager.total_committed,
            )

        repo_logger.info(
            "{} {} builds ({} fetched, {} already recorded)",
            "Would sync" if dry_run else "Synced",
            result.inserted,
            result.fetched,
            result.skipped_existing,
        )
        return result
