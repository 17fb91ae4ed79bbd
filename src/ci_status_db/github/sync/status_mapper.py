"""Map GitHub workflow-run status/conclusion onto ``BuildStatus``.

The mapping is total: any status GitHub does not (yet) document falls
back to PENDING rather than raising.
"""

from ci_status_db.db.models import BuildStatus

# Statuses whose conclusion is irrelevant
STATUS_TABLE: dict[str, BuildStatus] = {
    "queued": BuildStatus.PENDING,
    "in_progress": BuildStatus.IN_PROGRESS,
}

# Conclusions of a "completed" run; anything not listed is a failure
COMPLETED_TABLE: dict[str, BuildStatus] = {
    "success": BuildStatus.SUCCESS,
    "cancelled": BuildStatus.CANCELLED,
}

COMPLETED = "completed"


def map_status(status: str | None, conclusion: str | None) -> BuildStatus:
    """Map a GitHub (status, conclusion) pair to a build status.

    | status        | conclusion    | result      |
    |---------------|---------------|-------------|
    | queued        | any           | PENDING     |
    | in_progress   | any           | IN_PROGRESS |
    | completed     | success       | SUCCESS     |
    | completed     | cancelled     | CANCELLED   |
    | completed     | anything else | FAILED      |
    | anything else | any           | PENDING     |

    Args:
        status: Raw run status
        conclusion: Raw run conclusion (None until completed)

    Returns:
        The internal BuildStatus
    """
    if status == COMPLETED:
        return COMPLETED_TABLE.get(conclusion or "", BuildStatus.FAILED)
    return STATUS_TABLE.get(status or "", BuildStatus.PENDING)
