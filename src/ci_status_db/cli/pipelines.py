"""Pipeline definition commands."""

from typing import Annotated

import typer
from pydantic import ValidationError
from rich.table import Table

from ci_status_db.cli.common import console, run_async_command
from ci_status_db.db import BuildStatus, Pipeline, PipelineRepository, get_session
from ci_status_db.schemas import PipelineCreate, PipelineRead, PipelineUpdate

app = typer.Typer(help="Manage pipeline definitions")

PipelineIdArgument = Annotated[int, typer.Argument(help="Pipeline ID")]

StatusOption = Annotated[
    BuildStatus | None,
    typer.Option("--status", "-s", case_sensitive=False, help="Pipeline status"),
]

DescriptionOption = Annotated[
    str | None,
    typer.Option("--description", "-d", help="Free-text description"),
]


def _validation_message(e: ValidationError) -> str:
    err = e.errors()[0]
    field = ".".join(str(part) for part in err["loc"])
    return f"{field}: {err['msg']}" if field else err["msg"]


async def _require(pipelines: PipelineRepository, pipeline_id: int) -> Pipeline:
    pipeline = await pipelines.get_by_id(pipeline_id)
    if pipeline is None:
        raise LookupError(f"Pipeline not found with ID: {pipeline_id}")
    return pipeline


def _print_pipeline(pipeline: PipelineRead) -> None:
    console.print(f"[bold]Pipeline {pipeline.id}: {pipeline.name}[/bold]")
    console.print(f"  Repository: {pipeline.repository}")
    console.print(f"  Branch:     {pipeline.branch}")
    console.print(f"  Status:     {pipeline.status.value}")
    if pipeline.description:
        console.print(f"  {pipeline.description}")
    console.print(f"  Updated:    {pipeline.updated_at:%Y-%m-%d %H:%M}")


@app.command("list")
def list_pipelines(
    status: StatusOption = None,
    repository: str | None = typer.Option(None, "--repository", "-r", help="e.g. acme/widgets"),
    branch: str | None = typer.Option(
        None, "--branch", "-b", help="Only with --repository: narrow to one branch"
    ),
) -> None:
    """List pipelines, optionally by status or by repository and branch.

    Examples:
        cistatus pipelines list
        cistatus pipelines list --status FAILED
        cistatus pipelines list -r acme/widgets -b main
    """
    if branch is not None and repository is None:
        console.print("[red]Error:[/red] --branch requires --repository")
        raise typer.Exit(1)

    async def _list() -> list[PipelineRead]:
        async with get_session() as session:
            pipelines = PipelineRepository(session)
            if repository is not None:
                found = await pipelines.get_by_repository(repository, branch=branch)
                if status is not None:
                    found = [p for p in found if p.status == status]
            elif status is not None:
                found = await pipelines.get_by_status(status)
            else:
                found = await pipelines.get_all()
            return PipelineRead.from_orm_list(found)

    found = run_async_command(_list())
    if not found:
        console.print("No pipelines found")
        return

    table = Table(title="Pipelines")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Repository")
    table.add_column("Branch")
    table.add_column("Status")
    for pipeline in found:
        table.add_row(
            str(pipeline.id),
            pipeline.name,
            pipeline.repository,
            pipeline.branch,
            pipeline.status.value,
        )
    console.print(table)


@app.command("show")
def show_pipeline(
    key: str = typer.Argument(..., help="Pipeline ID or name"),
) -> None:
    """Show one pipeline, looked up by ID or by name."""

    async def _show() -> PipelineRead:
        async with get_session() as session:
            pipelines = PipelineRepository(session)
            pipeline = (
                await pipelines.get_by_id(int(key)) if key.isdigit() else None
            ) or await pipelines.get_by_name(key)
            if pipeline is None:
                raise LookupError(f"Pipeline not found: {key}")
            return PipelineRead.from_orm(pipeline)

    _print_pipeline(run_async_command(_show()))


@app.command("add")
def add_pipeline(
    name: str = typer.Argument(..., help="Unique pipeline name"),
    repository: str = typer.Option(..., "--repository", "-r", help="e.g. acme/widgets"),
    branch: str = typer.Option("main", "--branch", "-b"),
    description: DescriptionOption = None,
    status: StatusOption = None,
) -> None:
    """Define a pipeline.

    Examples:
        cistatus pipelines add nightly -r acme/widgets -b main -d "Nightly build"
    """
    try:
        data = PipelineCreate(
            name=name,
            repository=repository,
            branch=branch,
            description=description,
            status=status or BuildStatus.PENDING,
        )
    except ValidationError as e:
        console.print(f"[red]Error:[/red] {_validation_message(e)}")
        raise typer.Exit(1) from None

    async def _add() -> PipelineRead:
        async with get_session() as session:
            pipelines = PipelineRepository(session)
            if await pipelines.get_by_name(data.name) is not None:
                raise ValueError(f"Pipeline already exists: {data.name}")
            pipeline = await pipelines.create(
                data.name,
                data.repository,
                data.branch,
                status=data.status,
                description=data.description,
            )
            return PipelineRead.from_orm(pipeline)

    pipeline = run_async_command(_add())
    console.print(f"[green]Created[/green] pipeline {pipeline.name} (id {pipeline.id})")


@app.command("update")
def update_pipeline(
    pipeline_id: PipelineIdArgument,
    name: str | None = typer.Option(None, "--name", "-n", help="New name"),
    repository: str | None = typer.Option(None, "--repository", "-r"),
    branch: str | None = typer.Option(None, "--branch", "-b"),
    description: DescriptionOption = None,
    status: StatusOption = None,
) -> None:
    """Change fields of a pipeline; options left out keep their value.

    Examples:
        cistatus pipelines update 3 --status SUCCESS
    """
    given = {
        "name": name,
        "repository": repository,
        "branch": branch,
        "description": description,
        "status": status,
    }
    try:
        data = PipelineUpdate(**{k: v for k, v in given.items() if v is not None})
    except ValidationError as e:
        console.print(f"[red]Error:[/red] {_validation_message(e)}")
        raise typer.Exit(1) from None

    async def _update() -> PipelineRead:
        async with get_session() as session:
            pipelines = PipelineRepository(session)
            pipeline = await _require(pipelines, pipeline_id)
            changes = data.changes()
            if data.name is not None and data.name != pipeline.name:
                if await pipelines.get_by_name(data.name) is not None:
                    raise ValueError(f"Pipeline already exists: {data.name}")
            pipeline = await pipelines.update(pipeline, **changes)
            return PipelineRead.from_orm(pipeline)

    pipeline = run_async_command(_update())
    console.print(f"[green]Updated[/green] pipeline {pipeline.id}")
    _print_pipeline(pipeline)


@app.command("delete")
def delete_pipeline(pipeline_id: PipelineIdArgument) -> None:
    """Delete a pipeline."""

    async def _delete() -> None:
        async with get_session() as session:
            pipelines = PipelineRepository(session)
            await pipelines.delete(await _require(pipelines, pipeline_id))

    run_async_command(_delete())
    console.print(f"[green]Deleted[/green] pipeline {pipeline_id}")
