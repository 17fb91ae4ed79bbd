"""Pydantic schemas for Pipeline model."""

from datetime import datetime

from pydantic import Field

from ci_status_db.db.models import BuildStatus

from .base import SchemaBase


class PipelineCreate(SchemaBase):
    """Schema for creating a pipeline."""

    name: str = Field(min_length=1, max_length=200, description="Pipeline name (unique)")
    description: str | None = Field(default=None, max_length=1000)
    repository: str = Field(min_length=1, max_length=200, description="e.g. 'acme/widgets'")
    branch: str = Field(min_length=1, max_length=200)
    status: BuildStatus = BuildStatus.PENDING


class PipelineUpdate(SchemaBase):
    """Partial update; only fields that were set are applied."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    repository: str | None = Field(default=None, min_length=1, max_length=200)
    branch: str | None = Field(default=None, min_length=1, max_length=200)
    status: BuildStatus | None = None

    def changes(self) -> dict[str, object]:
        """Fields explicitly set on this update."""
        return self.model_dump(exclude_unset=True)


class PipelineRead(SchemaBase):
    """Schema for reading a pipeline."""

    id: int
    name: str
    description: str | None
    repository: str
    branch: str
    status: BuildStatus
    created_at: datetime
    updated_at: datetime
