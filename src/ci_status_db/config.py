"""Configuration settings for CI Status DB."""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GitHubApiConfig(BaseModel):
    """Configuration for the GitHub REST API connection."""

    base_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL (override for GitHub Enterprise)",
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Upper bound for a single workflow-run fetch",
    )


class SyncConfig(BaseModel):
    """Configuration for build sync behavior.

    Controls how many workflow runs are pulled per repository and how
    often inserted builds are committed.
    """

    runs_per_sync: int = Field(
        default=50,
        ge=1,
        le=100,
        description="Most recent workflow runs fetched per repository sync",
    )

    commit_batch_size: int = Field(
        default=25,
        ge=1,
        le=100,
        description="Builds to commit per batch (limits data loss on failure)",
    )


class MonitoredRepository(BaseModel):
    """A repository the scheduler should sync.

    Maps a GitHub owner/repo pair onto a locally registered repository ID.
    """

    id: int = Field(description="Local repository ID")
    owner: str = Field(description="GitHub owner (user or organization)")
    repo: str = Field(description="GitHub repository name")
    enabled: bool = Field(default=True, description="Skip this repository when False")

    @property
    def full_name(self) -> str:
        """Repository in owner/repo format."""
        return f"{self.owner}/{self.repo}"


class SchedulerConfig(BaseModel):
    """Configuration for the periodic sync scheduler."""

    enabled: bool = Field(
        default=True,
        description="Run scheduled sweeps (manual triggers always run)",
    )
    interval_seconds: int = Field(
        default=300,
        ge=1,
        description="Seconds between scheduled sweeps (default 5 minutes)",
    )
    repositories: list[MonitoredRepository] = Field(
        default_factory=list,
        description="Repositories to sync. Empty = every stored repository",
    )


class LoggingConfig(BaseModel):
    """Configuration for logging behavior.

    Controls file logging, rotation, and output format.
    """

    log_file: str | None = Field(
        default=None,
        description="Optional path for file logging (enables rotation)",
    )
    rotation: str = Field(
        default="10 MB",
        description="When to rotate log file (e.g., '10 MB', '1 day')",
    )
    retention: str = Field(
        default="7 days",
        description="How long to keep rotated logs",
    )
    serialize: bool = Field(
        default=False,
        description="If True, output JSON format to file",
    )


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Nested groups can be set with a double underscore, e.g.
    ``SCHEDULER__INTERVAL_SECONDS=60`` or, for lists, a JSON value:
    ``SCHEDULER__REPOSITORIES='[{"id": 1, "owner": "acme", "repo": "widgets"}]'``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # --------------------------------------------------------------------------
    # Database
    # --------------------------------------------------------------------------
    database_url: str = Field(
        default="sqlite+aiosqlite:///./ci_status.db",
        description="Async SQLite database connection string",
    )

    # --------------------------------------------------------------------------
    # GitHub API
    # --------------------------------------------------------------------------
    github_token: str = Field(
        default="",
        description="GitHub personal access token",
    )
    github: GitHubApiConfig = Field(
        default_factory=GitHubApiConfig,
        description="GitHub API connection configuration",
    )

    # --------------------------------------------------------------------------
    # Application
    # --------------------------------------------------------------------------
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # --------------------------------------------------------------------------
    # Sync & Scheduling
    # --------------------------------------------------------------------------
    sync: SyncConfig = Field(
        default_factory=SyncConfig,
        description="Build sync behavior configuration",
    )
    scheduler: SchedulerConfig = Field(
        default_factory=SchedulerConfig,
        description="Periodic sync scheduler configuration",
    )

    # --------------------------------------------------------------------------
    # Logging Configuration
    # --------------------------------------------------------------------------
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration (file output, rotation)",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
