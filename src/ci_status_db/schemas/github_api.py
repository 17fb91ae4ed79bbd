"""Pydantic schemas for parsing GitHub Actions API responses.

These schemas map to the workflow-run payloads of the GitHub REST API.
Fields GitHub adds later are ignored, and everything the sync does not
depend on is optional.
See: https://docs.github.com/en/rest/actions/workflow-runs
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .build import BuildStatusRead


class GitHubModel(BaseModel):
    """Base for GitHub payload models: unknown fields are dropped."""

    model_config = ConfigDict(extra="ignore")


class GitHubCommitAuthor(GitHubModel):
    """Git author of the head commit (not a GitHub user)."""

    name: str | None = Field(default=None, description="Author name")
    email: str | None = Field(default=None, description="Author email")


class GitHubHeadCommit(GitHubModel):
    """Head commit summary embedded in a workflow run."""

    id: str | None = Field(default=None, description="Commit SHA")
    message: str | None = Field(default=None, description="Commit message")
    timestamp: datetime | None = Field(default=None, description="Commit timestamp")
    author: GitHubCommitAuthor | None = Field(default=None, description="Commit author")


class GitHubRunRepository(GitHubModel):
    """Repository summary embedded in a workflow run."""

    id: int | None = Field(default=None, description="GitHub repository ID")
    name: str | None = Field(default=None, description="Repository name")
    full_name: str | None = Field(default=None, description="owner/name")
    html_url: str | None = Field(default=None, description="Repository web URL")


class WorkflowRun(GitHubModel):
    """One execution of a workflow.

    Maps to: GET /repos/{owner}/{repo}/actions/runs/{run_id}
    """

    id: int = Field(description="Workflow run ID")
    name: str | None = Field(default=None, description="Workflow name")
    head_branch: str | None = Field(default=None, description="Branch the run was triggered on")
    head_sha: str = Field(description="Commit SHA the run was triggered against")

    # Raw GitHub vocabulary: queued/in_progress/completed, success/failure/...
    status: str | None = Field(default=None, description="Run status")
    conclusion: str | None = Field(default=None, description="Outcome of a completed run")

    workflow_id: int | None = Field(default=None, description="Workflow ID")
    run_number: int | None = Field(default=None, description="Run number within the workflow")
    run_attempt: int | None = Field(default=None, description="Attempt number")

    created_at: datetime | None = Field(default=None, description="When the run was created")
    updated_at: datetime | None = Field(default=None, description="Last update timestamp")
    run_started_at: datetime | None = Field(default=None, description="When the run started")

    html_url: str | None = Field(default=None, description="Run web URL")

    repository: GitHubRunRepository | None = Field(default=None, description="Owning repository")
    head_commit: GitHubHeadCommit | None = Field(default=None, description="Head commit summary")

    @property
    def commit_message(self) -> str | None:
        """Head commit message, if GitHub included the commit."""
        return self.head_commit.message if self.head_commit else None

    @property
    def author_name(self) -> str | None:
        """Head commit author name, if present."""
        if self.head_commit is None or self.head_commit.author is None:
            return None
        return self.head_commit.author.name

    def to_build_status(self) -> BuildStatusRead:
        """Flatten into the status view shown by ``cistatus github``."""
        return BuildStatusRead(
            run_id=self.id,
            repository_name=self.repository.name if self.repository else None,
            branch=self.head_branch,
            commit_sha=self.head_sha,
            status=self.status,
            conclusion=self.conclusion,
            run_number=self.run_number,
            started_at=self.run_started_at,
            updated_at=self.updated_at,
            html_url=self.html_url,
            commit_message=self.commit_message,
            author_name=self.author_name,
        )


class WorkflowRunsPage(GitHubModel):
    """One page of workflow runs.

    Maps to: GET /repos/{owner}/{repo}/actions/runs
    """

    total_count: int = Field(default=0, description="Total runs matching the filters")
    workflow_runs: list[WorkflowRun] = Field(
        default_factory=list,
        description="Runs on this page, newest first",
    )
