"""GitHub client exceptions.

Every error raised by ``GitHubClient`` is a ``GitHubClientError``. A
*classified* error carries the HTTP status GitHub answered with; an
*unclassified* one (no response at all: connection refused, DNS, timeout)
has ``status_code=None``.
"""

from datetime import datetime


class GitHubClientError(Exception):
    """Base exception for GitHub client errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def is_classified(self) -> bool:
        """True if GitHub responded with an HTTP status."""
        return self.status_code is not None

    @property
    def reported_status(self) -> int:
        """HTTP status for reporting (0 when unclassified)."""
        return self.status_code or 0


class GitHubAuthenticationError(GitHubClientError):
    """Raised when authentication fails (401) or no token is configured.

    A missing token is detected before any request, so it is raised with
    ``status_code=None``.
    """

    def __init__(self, message: str, status_code: int | None = 401) -> None:
        super().__init__(message, status_code)


class GitHubRateLimitError(GitHubClientError):
    """Raised when the rate limit is exhausted (403 with rate limit headers)."""

    def __init__(
        self,
        message: str,
        status_code: int = 403,
        reset_at: datetime | None = None,
    ) -> None:
        super().__init__(message, status_code)
        self.reset_at = reset_at


class GitHubNotFoundError(GitHubClientError):
    """Raised when a repository, run, or any run at all is not found (404)."""

    def __init__(self, message: str, status_code: int = 404) -> None:
        super().__init__(message, status_code)
