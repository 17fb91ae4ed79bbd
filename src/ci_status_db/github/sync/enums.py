"""Enums for sync operations."""

from enum import Enum


class SyncErrorKind(str, Enum):
    """Why a repository sync failed.

    Carried on ``BuildSyncResult`` so callers can tell a caller mistake
    from a GitHub failure without inspecting exception types.
    """

    NOT_FOUND = "not_found"
    """Local repository ID does not exist. Caller's fault, never retried."""

    REMOTE_CLASSIFIED = "remote_classified"
    """GitHub answered with a non-2xx status."""

    REMOTE_UNCLASSIFIED = "remote_unclassified"
    """No usable response from GitHub (connection error, timeout)."""

    STORE = "store"
    """Database error while inserting builds."""

    UNEXPECTED = "unexpected"
    """Anything else."""


class SweepTrigger(str, Enum):
    """What started a sweep."""

    SCHEDULED = "scheduled"
    MANUAL = "manual"


class OutputFormat(str, Enum):
    """Output format for CLI commands."""

    TEXT = "text"
    """Human-readable text output."""

    JSON = "json"
    """Machine-readable JSON output."""
