"""Pydantic schemas for the Repository model, plus owner/repo parsing."""

from datetime import datetime

from pydantic import Field, HttpUrl, field_validator

from .base import SchemaBase


def parse_repo_string(repo: str) -> tuple[str, str]:
    """Split an ``owner/name`` string.

    Args:
        repo: Repository in owner/name format (e.g., "acme/widgets")

    Returns:
        Tuple of (owner, name)

    Raises:
        ValueError: If either part is missing
    """
    owner, sep, name = repo.strip().partition("/")
    if not sep or not owner or not name or "/" in name:
        raise ValueError(f"Repository must be in owner/name format: {repo!r}")
    return owner, name


def parse_repo_url(url: str) -> tuple[str, str]:
    """Derive (owner, repo) from a stored repository URL.

    Strips an optional trailing ``.git``, splits on ``/`` and takes the
    last two non-empty segments.

    Examples:
        https://github.com/acme/widgets.git -> ("acme", "widgets")
        https://github.com/acme/widgets     -> ("acme", "widgets")
        not-a-url                           -> ValueError

    Raises:
        ValueError: If fewer than two path segments remain
    """
    trimmed = url.strip()
    if trimmed.endswith(".git"):
        trimmed = trimmed[: -len(".git")]

    segments = [part for part in trimmed.split("/") if part]
    if len(segments) < 2:
        raise ValueError(f"Cannot derive owner/repo from URL: {url!r}")
    return segments[-2], segments[-1]


class RepositoryCreate(SchemaBase):
    """Schema for registering a repository."""

    name: str = Field(min_length=1, max_length=200, description="Unique repository name")
    github_url: str = Field(max_length=500, description="Canonical GitHub URL")

    @field_validator("github_url")
    @classmethod
    def validate_github_url(cls, v: str) -> str:
        """Require an http(s) URL whose path names owner/repo."""
        url = HttpUrl(v)
        path = (url.path or "").removesuffix(".git")
        if len([part for part in path.split("/") if part]) < 2:
            raise ValueError("GitHub URL must include owner and repository, e.g. /acme/widgets")
        return v


class RepositoryRead(SchemaBase):
    """Schema for reading repository data."""

    id: int
    name: str
    github_url: str
    created_at: datetime
