"""Pydantic schemas for builds and workflow-run status views."""

from datetime import datetime

from pydantic import Field

from ci_status_db.db.models import BuildStatus

from .base import SchemaBase


class BuildRead(SchemaBase):
    """Schema for reading a stored build."""

    id: int
    repository_id: int
    status: BuildStatus
    commit_sha: str
    started_at: datetime | None
    completed_at: datetime | None


class BuildStatusRead(SchemaBase):
    """Flattened view of a remote workflow run (not persisted)."""

    run_id: int = Field(description="Workflow run ID")
    repository_name: str | None = None
    branch: str | None = None
    commit_sha: str
    status: str | None = Field(default=None, description="Raw GitHub status")
    conclusion: str | None = Field(default=None, description="Raw GitHub conclusion")
    run_number: int | None = None
    started_at: datetime | None = None
    updated_at: datetime | None = None
    html_url: str | None = None
    commit_message: str | None = None
    author_name: str | None = None


class BuildCreate(SchemaBase):
    """Schema for recording a build by hand."""

    repository_id: int
    commit_sha: str = Field(min_length=1, max_length=64)
    status: BuildStatus
    started_at: datetime | None = None
    completed_at: datetime | None = None


class BuildUpdate(SchemaBase):
    """Partial build update; unset fields keep their stored value."""

    status: BuildStatus | None = None
    commit_sha: str | None = Field(default=None, min_length=1, max_length=64)
    started_at: datetime | None = None
    completed_at: datetime | None = None
