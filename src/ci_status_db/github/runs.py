"""Read-only workflow run queries.

Answers "what is the CI status of this repository right now" straight
from GitHub, without touching the database.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ci_status_db.logging import get_logger
from ci_status_db.schemas.build import BuildStatusRead

from .exceptions import GitHubNotFoundError

if TYPE_CHECKING:
    from .client import GitHubClient

logger = get_logger(__name__)


class WorkflowRunService:
    """Status lookups over ``GitHubClient``."""

    def __init__(self, client: GitHubClient) -> None:
        self._client = client

    async def get_latest_status(
        self,
        owner: str,
        repo: str,
        branch: str | None = None,
    ) -> BuildStatusRead:
        """Status of the most recent workflow run.

        Args:
            owner: Repository owner
            repo: Repository name
            branch: Only consider runs on this branch

        Raises:
            GitHubNotFoundError: If the repository has no runs (on that branch)
        """
        page = await self._client.list_workflow_runs(owner, repo, branch=branch, per_page=1)
        if not page.workflow_runs:
            where = f"{owner}/{repo}" + (f" on branch {branch}" if branch else "")
            logger.info("No workflow runs found for {}", where)
            raise GitHubNotFoundError(f"No workflow runs found for {where}")
        return page.workflow_runs[0].to_build_status()

    async def list_runs(
        self,
        owner: str,
        repo: str,
        *,
        status: str | None = None,
        per_page: int = 10,
    ) -> list[BuildStatusRead]:
        """Recent workflow runs, newest first."""
        page = await self._client.list_workflow_runs(owner, repo, status=status, per_page=per_page)
        return [run.to_build_status() for run in page.workflow_runs]

    async def get_run(self, owner: str, repo: str, run_id: int) -> BuildStatusRead:
        """A single workflow run by ID."""
        run = await self._client.get_workflow_run(owner, repo, run_id)
        return run.to_build_status()
