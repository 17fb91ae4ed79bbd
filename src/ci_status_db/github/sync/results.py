"""Result objects for sync operations.

Failures inside a repository sync are returned as values rather than
raised, so a sweep can count them and move on. Every result renders to
a plain dict for JSON output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from ci_status_db.github.exceptions import GitHubClientError

from .enums import SweepTrigger, SyncErrorKind


@dataclass
class BuildSyncResult:
    """Outcome of syncing one repository's workflow runs."""

    repository: str
    """GitHub repository (owner/repo)."""

    repository_id: int
    """Local repository ID."""

    inserted: int = 0
    """Builds durably inserted (or that would be, on a dry run)."""

    skipped_existing: int = 0
    """Runs whose commit already had a build."""

    fetched: int = 0
    """Runs returned by GitHub."""

    dry_run: bool = False

    error: Exception | None = None
    """Exception if the sync failed."""

    error_kind: SyncErrorKind | None = None

    @property
    def success(self) -> bool:
        """Check if the sync completed without errors."""
        return self.error is None

    @property
    def remote_status_code(self) -> int:
        """HTTP status GitHub returned for a failed fetch (0 if none)."""
        if isinstance(self.error, GitHubClientError):
            return self.error.reported_status
        return 0

    @property
    def http_status(self) -> int:
        """Status code to surface to an HTTP-style caller."""
        if self.error is None:
            return 200
        if self.error_kind == SyncErrorKind.NOT_FOUND:
            return 400
        # A failed sync never reports a success or redirect code
        if self.error_kind == SyncErrorKind.REMOTE_CLASSIFIED and self.remote_status_code >= 400:
            return self.remote_status_code
        return 500

    @property
    def message(self) -> str:
        """Human-readable summary."""
        if self.error is not None:
            return str(self.error)
        if self.dry_run:
            return f"Would sync {self.inserted} builds to database"
        return f"Synced {self.inserted} builds to database"

    def raise_for_error(self) -> BuildSyncResult:
        """Re-raise the captured exception, or return self on success."""
        if self.error is not None:
            raise self.error
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "success": self.success,
            "synced_count": self.inserted,
            "message": self.message,
            "repository": self.repository,
            "repository_id": self.repository_id,
            "fetched": self.fetched,
            "skipped_existing": self.skipped_existing,
        }
        if self.dry_run:
            result["dry_run"] = True
        if self.error is not None:
            result["error"] = str(self.error)
            result["error_type"] = type(self.error).__name__
            result["error_kind"] = self.error_kind.value if self.error_kind else None
            result["status_code"] = self.http_status
        return result

    @classmethod
    def from_inserted(
        cls,
        repository: str,
        repository_id: int,
        inserted: int,
        *,
        fetched: int = 0,
        skipped_existing: int = 0,
        dry_run: bool = False,
    ) -> BuildSyncResult:
        """Create a result representing a completed sync."""
        return cls(
            repository=repository,
            repository_id=repository_id,
            inserted=inserted,
            fetched=fetched,
            skipped_existing=skipped_existing,
            dry_run=dry_run,
        )

    @classmethod
    def from_error(
        cls,
        repository: str,
        repository_id: int,
        error: Exception,
        kind: SyncErrorKind,
        *,
        inserted: int = 0,
    ) -> BuildSyncResult:
        """Create a result representing a failed sync.

        Args:
            repository: owner/repo
            repository_id: Local repository ID
            error: The exception that caused the failure
            kind: Failure classification
            inserted: Builds already committed before the failure
        """
        return cls(
            repository=repository,
            repository_id=repository_id,
            inserted=inserted,
            error=error,
            error_kind=kind,
        )


@dataclass
class SweepResult:
    """Aggregate outcome of one sweep over all resolved repositories.

    Each sweep builds its own instance; nothing here is shared between
    a scheduled tick and a manual trigger running at the same time.
    """

    trigger: SweepTrigger = SweepTrigger.MANUAL

    total_synced: int = 0
    """Builds inserted across all successful repositories."""

    repos_succeeded: int = 0
    repos_failed: int = 0

    repo_results: list[BuildSyncResult] = field(default_factory=list)

    parse_failures: list[tuple[str, str]] = field(default_factory=list)
    """(repository name, URL) pairs whose URL had no owner/repo."""

    skipped_disabled: list[str] = field(default_factory=list)
    """Configured repositories skipped because they are disabled."""

    error: str | None = None
    """Set when the repository set itself could not be resolved."""

    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    duration_seconds: float = 0.0

    def record(self, result: BuildSyncResult) -> None:
        """Fold one repository result into the counters."""
        self.repo_results.append(result)
        if result.success:
            self.repos_succeeded += 1
            self.total_synced += result.inserted
        else:
            self.repos_failed += 1

    def record_parse_failure(self, name: str, url: str) -> None:
        """Note a repository skipped because its URL could not be parsed."""
        self.parse_failures.append((name, url))

    @property
    def success(self) -> bool:
        """True if the sweep ran over its repository set.

        Individual repository failures are reported through
        ``repos_failed``, not here.
        """
        return self.error is None

    @property
    def message(self) -> str:
        if self.error is not None:
            return f"Sync failed: {self.error}"
        return (
            f"Synced {self.total_synced} builds: "
            f"{self.repos_succeeded} repositories succeeded, {self.repos_failed} failed"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "summary": {
                "trigger": self.trigger.value,
                "success": self.success,
                "message": self.message,
                "total_synced": self.total_synced,
                "repos_succeeded": self.repos_succeeded,
                "repos_failed": self.repos_failed,
                "parse_failures": [
                    {"repository": name, "url": url} for name, url in self.parse_failures
                ],
                "skipped_disabled": list(self.skipped_disabled),
                "started_at": self.started_at.isoformat(),
                "duration_seconds": round(self.duration_seconds, 2),
            },
            "repositories": [r.to_dict() for r in self.repo_results],
        }


@dataclass
class TriggerResult:
    """Answer to "run a full sweep now"."""

    success: bool
    message: str
    sweep: SweepResult | None = None

    @classmethod
    def from_sweep(cls, sweep: SweepResult) -> TriggerResult:
        return cls(success=sweep.success, message=sweep.message, sweep=sweep)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "status": "success" if self.success else "error",
            "message": self.message,
        }
        if self.sweep is not None:
            result.update(self.sweep.to_dict())
        return result
