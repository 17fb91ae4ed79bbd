"""Tests for WorkflowRunService."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from ci_status_db.github.exceptions import GitHubNotFoundError
from ci_status_db.github.runs import WorkflowRunService
from ci_status_db.schemas.github_api import WorkflowRun
from tests.factories import make_runs_page, make_sha, make_workflow_run


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.list_workflow_runs = AsyncMock()
    client.get_workflow_run = AsyncMock()
    return client


class TestGetLatestStatus:
    @pytest.mark.asyncio
    async def test_returns_newest_run(self, mock_client):
        mock_client.list_workflow_runs.return_value = make_runs_page(
            make_workflow_run(
                run_id=2001, head_sha=make_sha(2001), status="in_progress", conclusion=None
            ),
            total_count=40,
        )

        status = await WorkflowRunService(mock_client).get_latest_status("acme", "widgets")

        assert status.run_id == 2001
        assert status.status == "in_progress"
        assert status.commit_sha == make_sha(2001)
        mock_client.list_workflow_runs.assert_awaited_once_with(
            "acme", "widgets", branch=None, per_page=1
        )

    @pytest.mark.asyncio
    async def test_branch_forwarded(self, mock_client):
        mock_client.list_workflow_runs.return_value = make_runs_page(make_workflow_run())

        await WorkflowRunService(mock_client).get_latest_status("acme", "widgets", "release")

        assert mock_client.list_workflow_runs.call_args.kwargs["branch"] == "release"

    @pytest.mark.asyncio
    async def test_no_runs_raises_not_found(self, mock_client):
        mock_client.list_workflow_runs.return_value = make_runs_page()

        with pytest.raises(GitHubNotFoundError) as exc_info:
            await WorkflowRunService(mock_client).get_latest_status("acme", "widgets", "main")

        assert exc_info.value.status_code == 404
        assert "No workflow runs found for acme/widgets on branch main" in str(exc_info.value)


class TestListRuns:
    @pytest.mark.asyncio
    async def test_maps_every_run(self, mock_client):
        mock_client.list_workflow_runs.return_value = make_runs_page(
            make_workflow_run(run_id=3001), make_workflow_run(run_id=3002)
        )

        runs = await WorkflowRunService(mock_client).list_runs("acme", "widgets", status="success")

        assert [r.run_id for r in runs] == [3001, 3002]
        mock_client.list_workflow_runs.assert_awaited_once_with(
            "acme", "widgets", status="success", per_page=10
        )

    @pytest.mark.asyncio
    async def test_empty(self, mock_client):
        mock_client.list_workflow_runs.return_value = make_runs_page()
        assert await WorkflowRunService(mock_client).list_runs("acme", "widgets") == []


class TestGetRun:
    @pytest.mark.asyncio
    async def test_get_run(self, mock_client):
        mock_client.get_workflow_run.return_value = WorkflowRun.model_validate(
            make_workflow_run(run_id=4001)
        )

        run = await WorkflowRunService(mock_client).get_run("acme", "widgets", 4001)

        assert run.run_id == 4001
        assert run.author_name == "Test Author"
        mock_client.get_workflow_run.assert_awaited_once_with("acme", "widgets", 4001)
