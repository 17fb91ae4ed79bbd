"""Sweep Orchestrator - Sync every monitored repository once.

Resolves the set of repositories to sync, then runs ``BuildSyncService``
for each one in its own database session. A failing repository is
counted and logged; it never stops the sweep.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ci_status_db.config import MonitoredRepository, get_settings
from ci_status_db.db.repositories import BuildRepository, RepositoryRepository
from ci_status_db.logging import LogContext, bind_sweep
from ci_status_db.schemas.repository import parse_repo_url

from .build_sync import BuildSyncService, RepositoryLocks
from .enums import SweepTrigger, SyncErrorKind
from .results import BuildSyncResult, SweepResult

if TYPE_CHECKING:
    from loguru import Logger
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from ci_status_db.github.client import GitHubClient


@dataclass(frozen=True)
class SyncTarget:
    """A resolved (repository ID, owner, repo) triple to sync."""

    repository_id: int
    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


class SweepOrchestrator:
    """Runs one sweep over all monitored repositories.

    The orchestrator itself holds no per-sweep state, so the same
    instance can serve a scheduled tick and a manual trigger at once;
    each call to ``sweep()`` builds and returns its own ``SweepResult``.

    Usage:
        async with GitHubClient() as client:
            orchestrator = SweepOrchestrator(client, get_session_factory())
            result = await orchestrator.sweep()
            print(result.message)
    """

    def __init__(
        self,
        client: GitHubClient,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        repositories: list[MonitoredRepository] | None = None,
        runs_per_sync: int | None = None,
        commit_batch_size: int | None = None,
        locks: RepositoryLocks | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            client: GitHub API client
            session_factory: Factory for per-repository sessions
            repositories: Configured repositories to sync. Defaults to
                          settings.scheduler.repositories; an empty list
                          means every stored repository.
            runs_per_sync: Passed through to BuildSyncService
            commit_batch_size: Passed through to BuildSyncService
            locks: Per-repository lock registry
        """
        settings = get_settings()
        self._client = client
        self._session_factory = session_factory
        self._repositories = (
            repositories if repositories is not None else settings.scheduler.repositories
        )
        self._runs_per_sync = runs_per_sync
        self._commit_batch_size = commit_batch_size
        self._locks = locks or RepositoryLocks()

    @property
    def locks(self) -> RepositoryLocks:
        return self._locks

    async def sweep(self, trigger: SweepTrigger = SweepTrigger.MANUAL) -> SweepResult:
        """Sync every resolved repository once, sequentially.

        Args:
            trigger: What started this sweep (for logging and the result)

        Returns:
            SweepResult owned by this call
        """
        result = SweepResult(trigger=trigger)
        sweep_logger = bind_sweep(trigger.value)
        start_time = time.monotonic()

        sweep_logger.info("Starting GitHub sync")
        try:
            targets = await self.resolve_targets(result, sweep_logger)
        except Exception as e:
            sweep_logger.exception("Could not resolve repositories to sync")
            result.error = str(e)
            result.duration_seconds = time.monotonic() - start_time
            return result

        for target in targets:
            with LogContext(repo=target.full_name):
                try:
                    repo_result = await self._sync_target(target)
                except Exception as e:
                    sweep_logger.exception("Error syncing repository {}", target.full_name)
                    repo_result = BuildSyncResult.from_error(
                        target.full_name,
                        target.repository_id,
                        e,
                        SyncErrorKind.UNEXPECTED,
                    )

            result.record(repo_result)
            if repo_result.success:
                sweep_logger.info(
                    "Synced {} builds for repository {}",
                    repo_result.inserted,
                    target.full_name,
                )
            else:
                sweep_logger.error(
                    "Failed to sync repository {}: {}",
                    target.full_name,
                    repo_result.message,
                )

        result.duration_seconds = time.monotonic() - start_time
        sweep_logger.info(
            "GitHub sync completed: {} builds, {} repositories succeeded, {} failed in {:.1f}s",
            result.total_synced,
            result.repos_succeeded,
            result.repos_failed,
            result.duration_seconds,
        )
        return result

    async def resolve_targets(
        self,
        result: SweepResult,
        sweep_logger: Logger,
    ) -> list[SyncTarget]:
        """Work out which repositories this sweep covers.

        Configured repositories win; disabled ones are recorded and
        skipped. With nothing configured, every stored repository is
        synced, with owner/repo taken from its GitHub URL.
        """
        if self._repositories:
            targets: list[SyncTarget] = []
            for monitored in self._repositories:
                if not monitored.enabled:
                    sweep_logger.debug("Skipping disabled repository {}", monitored.full_name)
                    result.skipped_disabled.append(monitored.full_name)
                    continue
                targets.append(SyncTarget(monitored.id, monitored.owner, monitored.repo))
            return targets

        async with self._session_factory() as session:
            stored = await RepositoryRepository(session).get_all()

        if not stored:
            sweep_logger.warning("No repositories found in database")
            return []

        targets = []
        for repository in stored:
            try:
                owner, repo = parse_repo_url(repository.github_url)
            except ValueError:
                sweep_logger.warning(
                    "Skipping repository {}: cannot parse URL {}",
                    repository.name,
                    repository.github_url,
                )
                result.record_parse_failure(repository.name, repository.github_url)
                continue
            targets.append(SyncTarget(repository.id, owner, repo))
        return targets

    async def _sync_target(self, target: SyncTarget) -> BuildSyncResult:
        """Sync one repository in a fresh session."""
        async with self._session_factory() as session:
            service = BuildSyncService(
                client=self._client,
                repo_repository=RepositoryRepository(session),
                build_repository=BuildRepository(session),
                runs_per_sync=self._runs_per_sync,
                commit_batch_size=self._commit_batch_size,
                locks=self._locks,
            )
            return await service.sync_repository(
                target.owner,
                target.repo,
                target.repository_id,
            )
