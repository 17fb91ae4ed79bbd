"""Repository registration commands."""

import typer
from pydantic import ValidationError
from rich.table import Table

from ci_status_db.cli.common import console, run_async_command
from ci_status_db.db import BuildRepository, RepositoryRepository, get_session
from ci_status_db.schemas import RepositoryCreate, RepositoryRead

app = typer.Typer(help="Manage monitored repositories")


@app.command("add")
def add_repository(
    name: str = typer.Argument(..., help="Unique repository name"),
    github_url: str = typer.Argument(..., help="GitHub URL, e.g. https://github.com/acme/widgets"),
) -> None:
    """Register a repository.

    Examples:
        cistatus repos add widgets https://github.com/acme/widgets.git
    """
    try:
        data = RepositoryCreate(name=name, github_url=github_url)
    except ValidationError as e:
        console.print(f"[red]Error:[/red] {e.errors()[0]['msg']}")
        raise typer.Exit(1) from None

    async def _add() -> tuple[RepositoryRead, bool]:
        async with get_session() as session:
            repo, created = await RepositoryRepository(session).get_or_create(
                data.name, data.github_url
            )
            return RepositoryRead.from_orm(repo), created

    repo, created = run_async_command(_add())
    if created:
        console.print(f"[green]Registered[/green] {repo.name} (id {repo.id})")
    else:
        console.print(f"[yellow]Already registered:[/yellow] {repo.name} (id {repo.id})")


@app.command("list")
def list_repositories() -> None:
    """List registered repositories."""

    async def _list() -> list[RepositoryRead]:
        async with get_session() as session:
            repos = await RepositoryRepository(session).get_all()
            return RepositoryRead.from_orm_list(repos)

    repos = run_async_command(_list())
    if not repos:
        console.print("No repositories registered. Use [bold]cistatus repos add[/bold].")
        return

    table = Table(title="Repositories")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("GitHub URL")
    for repo in repos:
        table.add_row(str(repo.id), repo.name, repo.github_url)
    console.print(table)


@app.command("delete")
def delete_repository(
    repository_id: int = typer.Argument(..., help="Local repository ID"),
) -> None:
    """Remove a repository together with all of its builds."""

    async def _delete() -> tuple[str, int]:
        async with get_session() as session:
            repos = RepositoryRepository(session)
            repo = await repos.get_by_id(repository_id)
            if repo is None:
                raise LookupError(f"Repository not found with ID: {repository_id}")
            name = repo.name
            build_count = await BuildRepository(session).count_by_repository(repository_id)
            await repos.delete(repo)
            return name, build_count

    name, build_count = run_async_command(_delete())
    console.print(f"[green]Deleted[/green] {name} and {build_count} builds")
