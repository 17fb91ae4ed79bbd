"""Sync commands for CI Status DB."""

import json
from typing import Any

import typer

from ci_status_db.cli.common import (
    DryRunOption,
    OutputFormatOption,
    RepoArgument,
    RequiredRepositoryIdOption,
    console,
    run_async_command,
    validate_repo,
)
from ci_status_db.db import BuildRepository, RepositoryRepository, get_session, get_session_factory
from ci_status_db.github import (
    BuildSyncService,
    GitHubClient,
    OutputFormat,
    PeriodicSyncScheduler,
    SweepOrchestrator,
)

app = typer.Typer(help="Sync workflow runs from GitHub into builds")


@app.command("repo")
def sync_repository(
    repo: RepoArgument,
    repository_id: RequiredRepositoryIdOption,
    dry_run: DryRunOption = False,
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Sync recent workflow runs of one repository.

    Examples:
        cistatus sync repo acme/widgets --repository-id 1
        cistatus sync repo acme/widgets -i 1 --dry-run
        cistatus sync repo acme/widgets -i 1 --format json
    """
    owner, name = validate_repo(repo)

    async def _sync() -> dict[str, Any]:
        async with GitHubClient() as client, get_session() as session:
            service = BuildSyncService(
                client=client,
                repo_repository=RepositoryRepository(session),
                build_repository=BuildRepository(session),
            )
            result = await service.sync_repository(owner, name, repository_id, dry_run=dry_run)
            return result.to_dict()

    result = run_async_command(_sync(), error_prefix="Sync failed")

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(result))
        if not result["success"]:
            raise typer.Exit(1)
        return

    if not result["success"]:
        console.print(f"[red]Error ({result['status_code']}):[/red] {result['error']}")
        raise typer.Exit(1)

    prefix = "[dim](dry-run)[/dim] " if dry_run else ""
    console.print(f"{prefix}[bold]Sync Complete[/bold] for {repo}")
    console.print()
    console.print(f"  [green]Inserted:[/green]         {result['synced_count']}")
    console.print(f"  [dim]Already recorded:[/dim] {result['skipped_existing']}")
    console.print(f"  Runs fetched:     {result['fetched']}")


@app.command("all")
def sync_all_repositories(
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Run one sweep over every monitored repository now.

    Uses the configured scheduler repositories, or every stored
    repository when none are configured.

    Examples:
        cistatus sync all
        cistatus sync all --format json
    """

    async def _sweep() -> dict[str, Any]:
        async with GitHubClient() as client:
            orchestrator = SweepOrchestrator(client, get_session_factory())
            scheduler = PeriodicSyncScheduler(orchestrator)
            result = await scheduler.trigger()
            return result.to_dict()

    result = run_async_command(_sweep(), error_prefix="Sync failed")

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(result))
        if result["status"] != "success":
            raise typer.Exit(1)
        return

    if result["status"] != "success":
        console.print(f"[red]Error:[/red] {result['message']}")
        raise typer.Exit(1)

    summary = result["summary"]
    console.print("[bold]Sweep Complete[/bold]")
    console.print()
    console.print(f"  [green]Builds synced:[/green]      {summary['total_synced']}")
    console.print(f"  [green]Repos succeeded:[/green]    {summary['repos_succeeded']}")
    if summary["repos_failed"]:
        console.print(f"  [red]Repos failed:[/red]       {summary['repos_failed']}")
    if summary["skipped_disabled"]:
        console.print(f"  [dim]Skipped (disabled):[/dim] {len(summary['skipped_disabled'])}")
    if summary["parse_failures"]:
        console.print(f"  [yellow]Bad URLs:[/yellow]           {len(summary['parse_failures'])}")
    console.print(f"  Duration: {summary['duration_seconds']:.1f}s")

    failed = [r for r in result["repositories"] if not r["success"]]
    if failed:
        console.print()
        console.print("[bold]Failed repositories:[/bold]")
        for repo_result in failed:
            console.print(f"  {repo_result['repository']}: {repo_result['error']}")

    for entry in summary["parse_failures"]:
        console.print(
            f"[yellow]Warning:[/yellow] skipped {entry['repository']}, "
            f"cannot parse URL {entry['url']}"
        )


@app.command("schedule")
def run_scheduler(
    interval: int | None = typer.Option(
        None,
        "--interval",
        min=1,
        help="Seconds between sweeps (default: SCHEDULER__INTERVAL_SECONDS)",
    ),
) -> None:
    """Run sweeps periodically until interrupted.

    Examples:
        cistatus sync schedule
        cistatus sync schedule --interval 60
    """

    async def _run() -> None:
        async with GitHubClient() as client:
            orchestrator = SweepOrchestrator(client, get_session_factory())
            scheduler = PeriodicSyncScheduler(orchestrator, interval_seconds=interval)
            console.print(
                f"[dim]Syncing every {scheduler.interval_seconds}s. Press Ctrl+C to stop.[/dim]"
            )
            await scheduler.run_forever()

    try:
        run_async_command(_run(), error_prefix="Scheduler failed")
    except KeyboardInterrupt:
        console.print("[dim]Scheduler stopped[/dim]")
