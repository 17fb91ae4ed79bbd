"""Main CLI application for CI Status DB."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from ci_status_db import __version__
from ci_status_db.cli import builds as builds_cmd
from ci_status_db.cli import github as github_cmd
from ci_status_db.cli import pipelines as pipelines_cmd
from ci_status_db.cli import repos as repos_cmd
from ci_status_db.cli import sync as sync_cmd
from ci_status_db.cli.common import run_async_command
from ci_status_db.config import get_settings
from ci_status_db.db import create_tables, dispose_engine
from ci_status_db.logging import setup_logging

app = typer.Typer(
    name="cistatus",
    help="Track GitHub Actions build status in a local database.",
    add_completion=False,
)
console = Console()

db_app = typer.Typer(help="Database commands")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"cistatus version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-error output (WARNING level).",
        ),
    ] = False,
) -> None:
    """CI Status DB - Record GitHub Actions builds per commit."""
    settings = get_settings()
    log_config = settings.logging

    setup_logging(
        level=settings.log_level,
        verbose=verbose,
        quiet=quiet,
        log_file=Path(log_config.log_file) if log_config.log_file else None,
        rotation=log_config.rotation,
        retention=log_config.retention,
        serialize=log_config.serialize,
    )


@db_app.command("init")
def init_db() -> None:
    """Create database tables (safe to re-run)."""

    async def _init() -> None:
        try:
            await create_tables()
        finally:
            await dispose_engine()

    run_async_command(_init(), error_prefix="Database init failed")
    console.print(f"[green]Database ready:[/green] {get_settings().database_url}")


# Register subcommands
app.add_typer(db_app, name="db")
app.add_typer(repos_cmd.app, name="repos")
app.add_typer(builds_cmd.app, name="builds")
app.add_typer(pipelines_cmd.app, name="pipelines")
app.add_typer(github_cmd.app, name="github")
app.add_typer(sync_cmd.app, name="sync")


if __name__ == "__main__":
    app()
