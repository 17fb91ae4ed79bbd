"""Stored build queries and manual corrections."""

from datetime import datetime
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.table import Table

from ci_status_db.cli.common import (
    RepositoryIdOption,
    RequiredRepositoryIdOption,
    console,
    run_async_command,
)
from ci_status_db.db import BuildRepository, BuildStatus, RepositoryRepository, get_session
from ci_status_db.schemas import BuildCreate, BuildRead, BuildUpdate

app = typer.Typer(help="Query and correct stored builds")

BuildIdArgument = Annotated[int, typer.Argument(help="Build ID")]

StatusFilterOption = Annotated[
    BuildStatus | None,
    typer.Option("--status", "-s", case_sensitive=False, help="Build status"),
]

CommitShaOption = Annotated[
    str | None,
    typer.Option("--commit-sha", "-c", help="Full commit SHA"),
]

StartedAtOption = Annotated[
    datetime | None,
    typer.Option("--started-at", help="When the build started"),
]

CompletedAtOption = Annotated[
    datetime | None,
    typer.Option("--completed-at", help="When the build finished"),
]


def _format_time(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


def _not_found(build_id: int) -> LookupError:
    return LookupError(f"Build not found with ID: {build_id}")


def _print_build(build: BuildRead) -> None:
    console.print(f"[bold]Build {build.id}[/bold]")
    console.print(f"  Repository ID: {build.repository_id}")
    console.print(f"  Status:        {build.status.value}")
    console.print(f"  Commit:        {build.commit_sha}")
    console.print(f"  Started:       {_format_time(build.started_at)}")
    console.print(f"  Completed:     {_format_time(build.completed_at)}")


@app.command("list")
def list_builds(
    repository_id: RepositoryIdOption = None,
    status: StatusFilterOption = None,
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Maximum builds to show"),
) -> None:
    """List stored builds, newest first.

    Examples:
        cistatus builds list
        cistatus builds list --repository-id 1
        cistatus builds list --status FAILED
    """

    async def _list() -> list[BuildRead]:
        async with get_session() as session:
            repo = BuildRepository(session)
            if status is not None:
                builds = await repo.get_by_status(
                    status, repository_id=repository_id, limit=limit
                )
            elif repository_id is not None:
                builds = await repo.get_by_repository(repository_id, limit=limit)
            else:
                builds = await repo.get_recent(limit=limit)
            return BuildRead.from_orm_list(builds)

    builds = run_async_command(_list())
    if not builds:
        console.print("No builds found")
        return

    table = Table(title="Builds")
    table.add_column("ID", style="cyan")
    table.add_column("Repo")
    table.add_column("Status")
    table.add_column("Commit")
    table.add_column("Started")
    table.add_column("Completed")
    for build in builds:
        table.add_row(
            str(build.id),
            str(build.repository_id),
            build.status.value,
            build.commit_sha[:7],
            _format_time(build.started_at),
            _format_time(build.completed_at),
        )
    console.print(table)


@app.command("show")
def show_build(build_id: BuildIdArgument) -> None:
    """Show one stored build."""

    async def _show() -> BuildRead:
        async with get_session() as session:
            build = await BuildRepository(session).get_by_id(build_id)
            if build is None:
                raise _not_found(build_id)
            return BuildRead.from_orm(build)

    _print_build(run_async_command(_show()))


@app.command("add")
def add_build(
    repository_id: RequiredRepositoryIdOption,
    commit_sha: str = typer.Option(..., "--commit-sha", "-c", help="Full commit SHA"),
    status: BuildStatus = typer.Option(  # noqa: B008
        BuildStatus.PENDING, "--status", "-s", case_sensitive=False, help="Build status"
    ),
    started_at: StartedAtOption = None,
    completed_at: CompletedAtOption = None,
) -> None:
    """Record a build by hand.

    Examples:
        cistatus builds add -i 1 --commit-sha 3f2a9c1 --status SUCCESS
    """
    try:
        data = BuildCreate(
            repository_id=repository_id,
            commit_sha=commit_sha,
            status=status,
            started_at=started_at,
            completed_at=completed_at,
        )
    except ValidationError as e:
        console.print(f"[red]Error:[/red] {e.errors()[0]['msg']}")
        raise typer.Exit(1) from None

    async def _add() -> BuildRead:
        async with get_session() as session:
            if not await RepositoryRepository(session).exists(data.repository_id):
                raise LookupError(f"Repository not found with ID: {data.repository_id}")
            builds = BuildRepository(session)
            if await builds.get_by_commit_sha(data.commit_sha) is not None:
                raise ValueError(f"A build is already recorded for commit {data.commit_sha}")
            build = await builds.create(
                data.repository_id,
                data.commit_sha,
                data.status,
                started_at=data.started_at,
                completed_at=data.completed_at,
            )
            return BuildRead.from_orm(build)

    build = run_async_command(_add())
    console.print(f"[green]Recorded[/green] build {build.id} for {build.commit_sha[:7]}")


@app.command("update")
def update_build(
    build_id: BuildIdArgument,
    status: StatusFilterOption = None,
    commit_sha: CommitShaOption = None,
    started_at: StartedAtOption = None,
    completed_at: CompletedAtOption = None,
) -> None:
    """Change fields of a stored build; options left out keep their value.

    Examples:
        cistatus builds update 7 --status FAILED --completed-at 2024-01-15T10:09:00
    """
    try:
        data = BuildUpdate(
            status=status,
            commit_sha=commit_sha,
            started_at=started_at,
            completed_at=completed_at,
        )
    except ValidationError as e:
        console.print(f"[red]Error:[/red] {e.errors()[0]['msg']}")
        raise typer.Exit(1) from None

    async def _update() -> BuildRead:
        async with get_session() as session:
            builds = BuildRepository(session)
            build = await builds.get_by_id(build_id)
            if build is None:
                raise _not_found(build_id)
            build = await builds.update(
                build,
                status=data.status,
                commit_sha=data.commit_sha,
                started_at=data.started_at,
                completed_at=data.completed_at,
            )
            return BuildRead.from_orm(build)

    build = run_async_command(_update())
    console.print(f"[green]Updated[/green] build {build.id}")
    _print_build(build)


@app.command("delete")
def delete_build(build_id: BuildIdArgument) -> None:
    """Delete a stored build."""

    async def _delete() -> None:
        async with get_session() as session:
            builds = BuildRepository(session)
            build = await builds.get_by_id(build_id)
            if build is None:
                raise _not_found(build_id)
            await builds.delete(build)

    run_async_command(_delete())
    console.print(f"[green]Deleted[/green] build {build_id}")
