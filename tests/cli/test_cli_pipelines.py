"""Integration tests for the ``cistatus pipelines`` commands (temporary SQLite file)."""

from pathlib import Path

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session
from typer.testing import CliRunner

from ci_status_db.cli.app import app
from ci_status_db.db import engine as db_engine
from ci_status_db.db.models import BuildStatus, Pipeline

runner = CliRunner()


@pytest.fixture
def initialized_db(tmp_path: Path, monkeypatch) -> Path:
    path = tmp_path / "ci_status.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{path}")
    monkeypatch.setattr(db_engine, "_engine", None)
    monkeypatch.setattr(db_engine, "_async_session_factory", None)
    result = runner.invoke(app, ["-q", "db", "init"])
    assert result.exit_code == 0, result.output
    return path


@pytest.fixture
def defined_pipelines(initialized_db: Path) -> Path:
    for args in (
        ["nightly", "-r", "acme/widgets", "-b", "main", "-d", "Full suite"],
        ["release", "-r", "acme/widgets", "-b", "release", "-s", "SUCCESS"],
        ["docs", "-r", "acme/docs", "-s", "FAILED"],
    ):
        result = runner.invoke(app, ["-q", "pipelines", "add", *args])
        assert result.exit_code == 0, result.output
    return initialized_db


def stored_pipelines(path: Path) -> list[Pipeline]:
    engine = create_engine(f"sqlite:///{path}")
    try:
        with Session(engine) as session:
            return list(session.scalars(select(Pipeline).order_by(Pipeline.id)))
    finally:
        engine.dispose()


class TestPipelineAdd:
    def test_add_stores_pipeline(self, defined_pipelines: Path):
        nightly, release, docs = stored_pipelines(defined_pipelines)

        assert (nightly.name, nightly.branch, nightly.status) == (
            "nightly",
            "main",
            BuildStatus.PENDING,
        )
        assert nightly.description == "Full suite"
        assert release.status == BuildStatus.SUCCESS
        assert docs.branch == "main"
        assert nightly.created_at is not None

    def test_add_duplicate_name(self, defined_pipelines: Path):
        result = runner.invoke(app, ["-q", "pipelines", "add", "nightly", "-r", "acme/other"])

        assert result.exit_code == 1
        assert "Pipeline already exists: nightly" in result.stdout
        assert len(stored_pipelines(defined_pipelines)) == 3

    def test_add_rejects_blank_repository(self, initialized_db: Path):
        result = runner.invoke(app, ["-q", "pipelines", "add", "ci", "-r", "  "])

        assert result.exit_code == 1
        assert "repository" in result.stdout
        assert stored_pipelines(initialized_db) == []


class TestPipelineQueries:
    def test_list_all(self, defined_pipelines: Path):
        result = runner.invoke(app, ["-q", "pipelines", "list"])

        assert result.exit_code == 0, result.output
        for name in ("nightly", "release", "docs"):
            assert name in result.stdout

    def test_list_by_status(self, defined_pipelines: Path):
        result = runner.invoke(app, ["-q", "pipelines", "list", "-s", "failed"])

        assert result.exit_code == 0, result.output
        assert "docs" in result.stdout
        assert "nightly" not in result.stdout

    def test_list_by_repository_and_branch(self, defined_pipelines: Path):
        result = runner.invoke(
            app, ["-q", "pipelines", "list", "-r", "acme/widgets", "-b", "release"]
        )

        assert result.exit_code == 0, result.output
        assert "release" in result.stdout
        assert "nightly" not in result.stdout

    def test_list_branch_needs_repository(self, defined_pipelines: Path):
        result = runner.invoke(app, ["-q", "pipelines", "list", "-b", "main"])

        assert result.exit_code == 1
        assert "--branch requires --repository" in result.stdout

    def test_list_empty(self, initialized_db: Path):
        result = runner.invoke(app, ["-q", "pipelines", "list"])

        assert "No pipelines found" in result.stdout

    @pytest.mark.parametrize("key", ["1", "nightly"])
    def test_show_by_id_or_name(self, defined_pipelines: Path, key: str):
        result = runner.invoke(app, ["-q", "pipelines", "show", key])

        assert result.exit_code == 0, result.output
        assert "Pipeline 1: nightly" in result.stdout
        assert "Full suite" in result.stdout

    def test_show_unknown(self, defined_pipelines: Path):
        result = runner.invoke(app, ["-q", "pipelines", "show", "missing"])

        assert result.exit_code == 1
        assert "Pipeline not found: missing" in result.stdout


class TestPipelineUpdateDelete:
    def test_update_changes_only_given_fields(self, defined_pipelines: Path):
        result = runner.invoke(
            app, ["-q", "pipelines", "update", "1", "-s", "IN_PROGRESS", "-b", "dev"]
        )

        assert result.exit_code == 0, result.output
        nightly = stored_pipelines(defined_pipelines)[0]
        assert nightly.status == BuildStatus.IN_PROGRESS
        assert nightly.branch == "dev"
        assert nightly.repository == "acme/widgets"
        assert nightly.description == "Full suite"

    def test_update_rename_to_taken_name(self, defined_pipelines: Path):
        result = runner.invoke(app, ["-q", "pipelines", "update", "1", "--name", "docs"])

        assert result.exit_code == 1
        assert "Pipeline already exists: docs" in result.stdout
        assert stored_pipelines(defined_pipelines)[0].name == "nightly"

    def test_update_unknown(self, initialized_db: Path):
        result = runner.invoke(app, ["-q", "pipelines", "update", "4", "-s", "SUCCESS"])

        assert result.exit_code == 1
        assert "Pipeline not found with ID: 4" in result.stdout

    def test_delete(self, defined_pipelines: Path):
        result = runner.invoke(app, ["-q", "pipelines", "delete", "3"])

        assert result.exit_code == 0, result.output
        assert [p.name for p in stored_pipelines(defined_pipelines)] == ["nightly", "release"]

    def test_delete_unknown(self, initialized_db: Path):
        result = runner.invoke(app, ["-q", "pipelines", "delete", "3"])

        assert result.exit_code == 1
        assert "Pipeline not found with ID: 3" in result.stdout
