"""GitHub API client module.

This module provides:
- GitHubClient: Async GitHub Actions API client
- WorkflowRunService: Live run status queries
- Build sync: BuildSyncService, SweepOrchestrator, PeriodicSyncScheduler
"""

from .client import GitHubClient
from .exceptions import (
    GitHubAuthenticationError,
    GitHubClientError,
    GitHubNotFoundError,
    GitHubRateLimitError,
)
from .runs import WorkflowRunService
from .sync import (
    BuildSyncResult,
    BuildSyncService,
    OutputFormat,
    PeriodicSyncScheduler,
    SweepOrchestrator,
    SweepResult,
    SyncErrorKind,
    TriggerResult,
)

__all__ = [
    # Client
    "GitHubClient",
    "WorkflowRunService",
    # Exceptions
    "GitHubAuthenticationError",
    "GitHubClientError",
    "GitHubNotFoundError",
    "GitHubRateLimitError",
    # Build sync
    "BuildSyncResult",
    "BuildSyncService",
    "OutputFormat",
    "PeriodicSyncScheduler",
    "SweepOrchestrator",
    "SweepResult",
    "SyncErrorKind",
    "TriggerResult",
]
