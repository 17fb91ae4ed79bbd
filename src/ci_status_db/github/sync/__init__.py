"""GitHub build sync.

Components, leaf first:
- status_mapper: GitHub status/conclusion -> BuildStatus
- CommitManager: batch commit boundaries
- BuildSyncService: one repository's runs -> builds
- SweepOrchestrator: every monitored repository, failures isolated
- PeriodicSyncScheduler: fixed-rate sweeps plus manual triggers
"""

from .build_sync import BuildSyncService, RepositoryLocks, RepositoryNotFoundError
from .commit_manager import CommitManager
from .enums import OutputFormat, SweepTrigger, SyncErrorKind
from .orchestrator import SweepOrchestrator, SyncTarget
from .results import BuildSyncResult, SweepResult, TriggerResult
from .scheduler import PeriodicSyncScheduler
from .status_mapper import map_status

__all__ = [
    "BuildSyncResult",
    "BuildSyncService",
    "CommitManager",
    "OutputFormat",
    "PeriodicSyncScheduler",
    "RepositoryLocks",
    "RepositoryNotFoundError",
    "SweepOrchestrator",
    "SweepResult",
    "SweepTrigger",
    "SyncErrorKind",
    "SyncTarget",
    "TriggerResult",
    "map_status",
]
