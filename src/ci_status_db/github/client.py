"""Async GitHub Actions API client wrapper using githubkit.

This module provides a typed async interface to the workflow-run
endpoints of the GitHub REST API. The client never retries: githubkit's
own retry is switched off and failures are handed back to the caller as
``GitHubClientError`` subclasses.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from datetime import UTC, datetime
from typing import Any, TypeVar

from githubkit import GitHub
from githubkit.exception import GitHubException, RequestFailed
from pydantic import ValidationError

from ci_status_db.config import get_settings
from ci_status_db.logging import get_logger
from ci_status_db.schemas.github_api import WorkflowRun, WorkflowRunsPage

from .exceptions import (
    GitHubAuthenticationError,
    GitHubClientError,
    GitHubNotFoundError,
    GitHubRateLimitError,
)

logger = get_logger(__name__)

T = TypeVar("T")

MAX_PER_PAGE = 100
"""GitHub's hard cap on ``per_page``."""


def clamp_per_page(per_page: int | None) -> int | None:
    """Clamp a requested page size to GitHub's maximum.

    Returns None (parameter omitted) for a missing or non-positive size.
    """
    if per_page is None or per_page <= 0:
        return None
    return min(per_page, MAX_PER_PAGE)


def _parse_reset(value: str | None) -> datetime | None:
    """Read ``x-ratelimit-reset`` (epoch seconds); None when absent or malformed."""
    try:
        reset_ts = int(value or "0")
    except ValueError:
        return None
    return datetime.fromtimestamp(reset_ts, tz=UTC) if reset_ts > 0 else None


class GitHubClient:
    """Async GitHub API client for workflow-run retrieval.

    Usage:
        async with GitHubClient() as client:
            page = await client.list_workflow_runs("acme", "widgets", per_page=50)
            for run in page.workflow_runs:
                print(run.head_sha, run.status, run.conclusion)
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the GitHub client.

        Args:
            token: GitHub PAT. If not provided, uses GITHUB_TOKEN from settings.
            base_url: API root. Defaults to settings.github.base_url.
            timeout: Seconds allowed per request. Defaults to
                     settings.github.timeout_seconds.

        Raises:
            GitHubAuthenticationError: If no token is available.
        """
        settings = get_settings()
        self._token = token or settings.github_token
        if not self._token:
            raise GitHubAuthenticationError(
                "GitHub token required. Set GITHUB_TOKEN environment variable.",
                status_code=None,
            )
        self._base_url = base_url or settings.github.base_url
        self._timeout = timeout or settings.github.timeout_seconds
        self._client: GitHub[Any] | None = None

    @property
    def _github(self) -> GitHub[Any]:
        """Get or create the githubkit client instance."""
        if self._client is None:
            self._client = GitHub(
                self._token,
                base_url=self._base_url,
                timeout=self._timeout,
                auto_retry=False,
            )
        return self._client

    @property
    def timeout(self) -> float:
        """Seconds allowed per request."""
        return self._timeout

    async def close(self) -> None:
        """Drop the underlying githubkit client."""
        if self._client is not None:
            self._client = None

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Workflow Runs
    # -------------------------------------------------------------------------
    async def list_workflow_runs(
        self,
        owner: str,
        repo: str,
        *,
        branch: str | None = None,
        status: str | None = None,
        per_page: int | None = None,
        page: int | None = None,
    ) -> WorkflowRunsPage:
        """List workflow runs for a repository, newest first.

        Fetches a single page. ``branch`` and ``status`` are forwarded
        untouched when set; GitHub owns their vocabulary.

        Args:
            owner: Repository owner (org or user)
            repo: Repository name
            branch: Only runs triggered on this branch
            status: Only runs with this status or conclusion
            per_page: Results per page (clamped to 100)
            page: Page number (1-based)

        Returns:
            WorkflowRunsPage (``workflow_runs`` may be empty)

        Raises:
            GitHubClientError: On any failure (see module docstring)
        """
        params: dict[str, Any] = {}
        if branch:
            params["branch"] = branch
        if status:
            params["status"] = status
        clamped = clamp_per_page(per_page)
        if clamped is not None:
            params["per_page"] = clamped
        if page is not None and page > 0:
            params["page"] = page

        target = f"{owner}/{repo}"
        logger.debug("Fetching workflow runs for {} {}", target, params)

        resp = await self._request(
            self._github.rest.actions.async_list_workflow_runs_for_repo(
                owner=owner,
                repo=repo,
                **params,
            ),
            target,
        )
        result = self._parse(WorkflowRunsPage, resp, target)
        logger.debug(
            "Fetched {} of {} workflow runs for {}",
            len(result.workflow_runs),
            result.total_count,
            target,
        )
        return result

    async def get_workflow_run(self, owner: str, repo: str, run_id: int) -> WorkflowRun:
        """Get a single workflow run.

        Raises:
            GitHubNotFoundError: If the run doesn't exist
            GitHubClientError: On any other failure
        """
        target = f"{owner}/{repo}"
        logger.debug("Fetching workflow run {} for {}", run_id, target)
        resp = await self._request(
            self._github.rest.actions.async_get_workflow_run(
                owner=owner,
                repo=repo,
                run_id=run_id,
            ),
            f"run {run_id} in {target}",
        )
        return self._parse(WorkflowRun, resp, target)

    # -------------------------------------------------------------------------
    # Request Plumbing
    # -------------------------------------------------------------------------
    async def _request(self, call: Awaitable[T], target: str) -> T:
        """Await a githubkit call under the timeout and translate failures."""
        try:
            return await asyncio.wait_for(call, timeout=self._timeout)
        except RequestFailed as e:
            raise self._handle_error(e, target) from e
        except TimeoutError as e:
            logger.warning("GitHub API call for {} timed out after {}s", target, self._timeout)
            raise GitHubClientError(
                f"GitHub API request for {target} timed out after {self._timeout:g}s"
            ) from e
        except GitHubException as e:
            logger.warning("Could not reach GitHub API for {}: {}", target, e)
            raise GitHubClientError(f"Failed to connect to GitHub API: {e}") from e

    @staticmethod
    def _parse(model: type[T], resp: Any, target: str) -> T:
        """Validate a response body against one of our schemas."""
        try:
            return model.model_validate(resp.json())  # type: ignore[attr-defined,no-any-return]
        except (ValidationError, ValueError) as e:
            # A 2xx with an unusable body is not an HTTP failure; report it unclassified
            raise GitHubClientError(f"Unexpected response from GitHub API for {target}: {e}") from e

    def _handle_error(self, error: RequestFailed, target: str) -> GitHubClientError:
        """Convert a githubkit HTTP failure into a classified client error."""
        status = error.response.status_code
        logger.error("GitHub API error for {}: HTTP {}", target, status)

        if status == 401:
            return GitHubAuthenticationError("Invalid GitHub token")
        if status == 403:
            headers = error.response.headers
            if headers.get("x-ratelimit-remaining") == "0":
                return GitHubRateLimitError(
                    "GitHub rate limit exceeded",
                    reset_at=_parse_reset(headers.get("x-ratelimit-reset")),
                )
            return GitHubClientError(f"Access forbidden for {target}", status_code=403)
        if status == 404:
            return GitHubNotFoundError(f"Not found: {target}")
        return GitHubClientError(
            f"Failed to fetch workflow runs for {target} (HTTP {status})",
            status_code=status,
        )
