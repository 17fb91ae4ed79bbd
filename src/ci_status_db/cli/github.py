"""Live GitHub Actions status commands."""

import typer
from rich.table import Table

from ci_status_db.cli.common import RepoArgument, console, run_async_command, validate_repo
from ci_status_db.github import GitHubClient, WorkflowRunService
from ci_status_db.github.sync import map_status
from ci_status_db.schemas import BuildStatusRead

app = typer.Typer(help="GitHub Actions commands")

_STATUS_STYLES = {
    "SUCCESS": "green",
    "FAILED": "red",
    "CANCELLED": "yellow",
    "IN_PROGRESS": "blue",
    "PENDING": "dim",
}


def _build_status(run: BuildStatusRead) -> str:
    status = map_status(run.status, run.conclusion).value
    return f"[{_STATUS_STYLES[status]}]{status}[/{_STATUS_STYLES[status]}]"


def _print_run(run: BuildStatusRead) -> None:
    console.print(f"  Run:     #{run.run_number or '?'} (id {run.run_id})")
    console.print(f"  Status:  {_build_status(run)} ({run.status}/{run.conclusion or '-'})")
    console.print(f"  Branch:  {run.branch or '-'}")
    console.print(f"  Commit:  {run.commit_sha[:7]}")
    if run.commit_message:
        first_line = run.commit_message.splitlines()[0]
        console.print(f"  Message: {first_line}")
    if run.author_name:
        console.print(f"  Author:  {run.author_name}")
    if run.html_url:
        console.print(f"  URL:     {run.html_url}")


@app.command("status")
def latest_status(
    repo: RepoArgument,
    branch: str | None = typer.Option(
        None,
        "--branch",
        "-b",
        help="Only consider runs on this branch",
    ),
) -> None:
    """Show the status of the most recent workflow run.

    Examples:
        cistatus github status acme/widgets
        cistatus github status acme/widgets --branch main
    """
    owner, name = validate_repo(repo)

    async def _status() -> BuildStatusRead:
        async with GitHubClient() as client:
            return await WorkflowRunService(client).get_latest_status(owner, name, branch)

    run = run_async_command(_status())
    console.print(f"[bold]Latest run for {repo}[/bold]")
    _print_run(run)


@app.command("runs")
def list_runs(
    repo: RepoArgument,
    status: str | None = typer.Option(
        None,
        "--status",
        "-s",
        help="GitHub run status or conclusion (e.g., completed, failure)",
    ),
    per_page: int = typer.Option(
        10,
        "--per-page",
        "-n",
        min=1,
        help="Runs to show (GitHub caps this at 100)",
    ),
) -> None:
    """List recent workflow runs.

    Examples:
        cistatus github runs acme/widgets
        cistatus github runs acme/widgets --status failure -n 20
    """
    owner, name = validate_repo(repo)

    async def _runs() -> list[BuildStatusRead]:
        async with GitHubClient() as client:
            return await WorkflowRunService(client).list_runs(
                owner, name, status=status, per_page=per_page
            )

    runs = run_async_command(_runs())
    if not runs:
        console.print(f"No workflow runs found for {repo}")
        return

    table = Table(title=f"Workflow runs in {repo}")
    table.add_column("Run", style="cyan")
    table.add_column("Status")
    table.add_column("Branch")
    table.add_column("Commit")
    table.add_column("Started")

    for run in runs:
        table.add_row(
            f"#{run.run_number}" if run.run_number else str(run.run_id),
            _build_status(run),
            run.branch or "-",
            run.commit_sha[:7],
            run.started_at.strftime("%Y-%m-%d %H:%M") if run.started_at else "-",
        )

    console.print(table)


@app.command("run")
def show_run(
    repo: RepoArgument,
    run_id: int = typer.Argument(..., help="Workflow run ID"),
) -> None:
    """Show a single workflow run.

    Examples:
        cistatus github run acme/widgets 123456789
    """
    owner, name = validate_repo(repo)

    async def _run() -> BuildStatusRead:
        async with GitHubClient() as client:
            return await WorkflowRunService(client).get_run(owner, name, run_id)

    run = run_async_command(_run())
    console.print(f"[bold]Workflow run {run_id} in {repo}[/bold]")
    _print_run(run)
