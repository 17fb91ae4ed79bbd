"""Tests for SweepOrchestrator.

Tests cover:
- Target resolution (configured list vs stored repositories)
- Disabled and unparseable repositories
- Failure isolation across repositories
- Per-invocation results
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import func, select

from ci_status_db.config import MonitoredRepository
from ci_status_db.db.models import Build
from ci_status_db.github.exceptions import GitHubClientError
from ci_status_db.github.sync.enums import SweepTrigger, SyncErrorKind
from ci_status_db.github.sync.orchestrator import SweepOrchestrator
from tests.factories import make_repository, make_runs_page, make_sha, make_workflow_run


# -----------------------------------------------------------------------------
# Test Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
async def stored_repos(session_factory) -> dict[str, int]:
    """Three registered repositories, name -> id."""
    async with session_factory() as session:
        repos = [
            make_repository(
                session, name="widgets", github_url="https://github.com/acme/widgets.git"
            ),
            make_repository(session, name="gadgets", github_url="https://github.com/acme/gadgets"),
            make_repository(session, name="gizmos", github_url="https://github.com/acme/gizmos/"),
        ]
        await session.commit()
        return {r.name: r.id for r in repos}


def runs_by_repo(failing: set[str] | None = None):
    """Client side effect: two distinct runs per repository, some repos failing."""
    failing = failing or set()
    offsets = {"widgets": 0, "gadgets": 10, "gizmos": 20}

    async def list_workflow_runs(owner, repo, **kwargs):
        if repo in failing:
            raise GitHubClientError(f"Failed to fetch workflow runs for {owner}/{repo}", 500)
        base = offsets.get(repo, 90)
        return make_runs_page(
            make_workflow_run(head_sha=make_sha(base + 1)),
            make_workflow_run(head_sha=make_sha(base + 2)),
        )

    return list_workflow_runs


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.list_workflow_runs = AsyncMock(side_effect=runs_by_repo())
    return client


def monitored(ids: dict[str, int], *names: str, disabled: tuple[str, ...] = ()):
    return [
        MonitoredRepository(id=ids[name], owner="acme", repo=name, enabled=name not in disabled)
        for name in names
    ]


async def build_count(session_factory) -> int:
    async with session_factory() as session:
        result = await session.execute(select(func.count(Build.id)))
        return result.scalar() or 0


# -----------------------------------------------------------------------------
# Configured repositories
# -----------------------------------------------------------------------------
class TestConfiguredRepositories:
    @pytest.mark.asyncio
    async def test_syncs_every_configured_repository(
        self, session_factory, mock_client, stored_repos
    ):
        orchestrator = SweepOrchestrator(
            mock_client,
            session_factory,
            repositories=monitored(stored_repos, "widgets", "gadgets", "gizmos"),
        )

        result = await orchestrator.sweep()

        assert result.success
        assert result.total_synced == 6
        assert result.repos_succeeded == 3
        assert result.repos_failed == 0
        assert await build_count(session_factory) == 6

    @pytest.mark.asyncio
    async def test_failure_in_middle_does_not_stop_sweep(
        self, session_factory, mock_client, stored_repos
    ):
        mock_client.list_workflow_runs.side_effect = runs_by_repo(failing={"gadgets"})
        orchestrator = SweepOrchestrator(
            mock_client,
            session_factory,
            repositories=monitored(stored_repos, "widgets", "gadgets", "gizmos"),
        )

        result = await orchestrator.sweep()

        assert result.repos_succeeded == 2
        assert result.repos_failed == 1
        assert result.total_synced == 4
        assert [r.repository for r in result.repo_results] == [
            "acme/widgets",
            "acme/gadgets",
            "acme/gizmos",
        ]
        assert result.repo_results[1].error_kind == SyncErrorKind.REMOTE_CLASSIFIED
        assert await build_count(session_factory) == 4

    @pytest.mark.asyncio
    async def test_disabled_repositories_skipped(self, session_factory, mock_client, stored_repos):
        orchestrator = SweepOrchestrator(
            mock_client,
            session_factory,
            repositories=monitored(stored_repos, "widgets", "gadgets", disabled=("gadgets",)),
        )

        result = await orchestrator.sweep()

        assert result.repos_succeeded == 1
        assert result.skipped_disabled == ["acme/gadgets"]
        called_repos = [c.args[1] for c in mock_client.list_workflow_runs.await_args_list]
        assert called_repos == ["widgets"]

    @pytest.mark.asyncio
    async def test_unregistered_id_counts_as_failure(
        self, session_factory, mock_client, stored_repos
    ):
        orchestrator = SweepOrchestrator(
            mock_client,
            session_factory,
            repositories=[MonitoredRepository(id=999, owner="acme", repo="widgets")],
        )

        result = await orchestrator.sweep()

        assert result.repos_failed == 1
        assert result.repo_results[0].http_status == 400

    @pytest.mark.asyncio
    async def test_unexpected_exception_isolated(self, session_factory, stored_repos):
        client = MagicMock()
        calls = 0

        async def explode_once(owner, repo, **kwargs):
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("unexpected")
            return make_runs_page(make_workflow_run(head_sha=make_sha(50 + calls)))

        client.list_workflow_runs = AsyncMock(side_effect=explode_once)
        orchestrator = SweepOrchestrator(
            client,
            session_factory,
            repositories=monitored(stored_repos, "widgets", "gadgets"),
        )

        result = await orchestrator.sweep()

        assert result.repos_failed == 1
        assert result.repos_succeeded == 1
        assert result.repo_results[0].error_kind == SyncErrorKind.UNEXPECTED


# -----------------------------------------------------------------------------
# Stored repositories fallback
# -----------------------------------------------------------------------------
class TestStoredRepositories:
    @pytest.mark.asyncio
    async def test_owner_and_repo_parsed_from_url(
        self, session_factory, mock_client, stored_repos
    ):
        orchestrator = SweepOrchestrator(mock_client, session_factory, repositories=[])

        result = await orchestrator.sweep()

        assert result.repos_succeeded == 3
        called = [c.args[:2] for c in mock_client.list_workflow_runs.await_args_list]
        assert called == [("acme", "widgets"), ("acme", "gadgets"), ("acme", "gizmos")]

    @pytest.mark.asyncio
    async def test_unparseable_url_skipped(self, session_factory, mock_client, stored_repos):
        async with session_factory() as session:
            make_repository(session, name="legacy", github_url="not-a-url")
            await session.commit()

        orchestrator = SweepOrchestrator(mock_client, session_factory, repositories=[])

        result = await orchestrator.sweep()

        assert result.parse_failures == [("legacy", "not-a-url")]
        assert result.repos_succeeded == 3
        assert result.repos_failed == 0

    @pytest.mark.asyncio
    async def test_no_repositories(self, session_factory, mock_client):
        orchestrator = SweepOrchestrator(mock_client, session_factory, repositories=[])

        result = await orchestrator.sweep()

        assert result.success
        assert result.repo_results == []
        mock_client.list_workflow_runs.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_resolution_failure_reported(self, mock_client):
        session_factory = MagicMock(side_effect=RuntimeError("database is locked"))
        orchestrator = SweepOrchestrator(mock_client, session_factory, repositories=[])

        result = await orchestrator.sweep()

        assert not result.success
        assert result.error == "database is locked"


# -----------------------------------------------------------------------------
# Per-invocation results
# -----------------------------------------------------------------------------
class TestSweepResults:
    @pytest.mark.asyncio
    async def test_trigger_recorded(self, session_factory, mock_client):
        orchestrator = SweepOrchestrator(mock_client, session_factory, repositories=[])

        result = await orchestrator.sweep(SweepTrigger.SCHEDULED)

        assert result.trigger == SweepTrigger.SCHEDULED
        assert result.duration_seconds >= 0

    @pytest.mark.asyncio
    async def test_each_sweep_owns_its_counters(self, session_factory, mock_client, stored_repos):
        orchestrator = SweepOrchestrator(
            mock_client,
            session_factory,
            repositories=monitored(stored_repos, "widgets"),
        )

        first = await orchestrator.sweep()
        second = await orchestrator.sweep()

        assert first is not second
        assert first.total_synced == 2
        assert second.total_synced == 0
        assert second.repo_results[0].skipped_existing == 2
