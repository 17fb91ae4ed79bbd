"""Shared pieces for the ``cistatus`` commands.

- ``console``: the one rich console every command prints through
- ``run_async_command``: run a coroutine from a sync typer command, turning
  errors into a red message and exit code 1
- ``Annotated`` aliases for options several commands accept
- ``validate_repo``: parse ``owner/name`` or exit 1
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Annotated, TypeVar

import typer
from rich.console import Console

from ci_status_db.github.sync.enums import OutputFormat

console = Console()

T = TypeVar("T")


def run_async_command(
    coro: Coroutine[object, object, T],
    *,
    error_prefix: str = "Error",
) -> T:
    """Run ``coro`` to completion on a fresh event loop.

    Args:
        coro: Coroutine doing the command's work
        error_prefix: Text shown before the exception message

    Returns:
        Whatever the coroutine returned

    Raises:
        typer.Exit: Passed through from the coroutine, or code 1 on any error

    Example:
        async def _status() -> BuildStatusRead:
            async with GitHubClient() as client:
                return await WorkflowRunService(client).get_latest_status("acme", "widgets")

        status = run_async_command(_status(), error_prefix="Status lookup failed")
    """
    try:
        return asyncio.run(coro)
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]{error_prefix}:[/red] {e}")
        raise typer.Exit(1) from None


# -----------------------------------------------------------------------------
# Options
# -----------------------------------------------------------------------------

OutputFormatOption = Annotated[
    OutputFormat,
    typer.Option("--format", "-f", help="Output format"),
]

DryRunOption = Annotated[
    bool,
    typer.Option("--dry-run", help="Look up runs and report, but insert nothing"),
]

RepositoryIdOption = Annotated[
    int | None,
    typer.Option("--repository-id", "-i", help="Local repository ID"),
]
"""Optional repository filter, e.g. ``cistatus builds list -i 1``."""

RequiredRepositoryIdOption = Annotated[
    int,
    typer.Option("--repository-id", "-i", help="Local repository ID the builds belong to"),
]

# -----------------------------------------------------------------------------
# Repository Arguments
# -----------------------------------------------------------------------------

RepoArgument = Annotated[
    str,
    typer.Argument(help="Repository in owner/name format (e.g., acme/widgets)"),
]


def validate_repo(repo: str) -> tuple[str, str]:
    """Split ``owner/name``, exiting with code 1 when malformed."""
    from ci_status_db.schemas import parse_repo_string

    try:
        return parse_repo_string(repo)
    except ValueError:
        console.print("[red]Error:[/red] Repository must be in owner/name format")
        raise typer.Exit(1) from None
