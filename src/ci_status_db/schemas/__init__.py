"""Pydantic schemas for CI Status DB.

This module provides input validation and output serialization models.
"""

from .base import SchemaBase
from .build import BuildCreate, BuildRead, BuildStatusRead, BuildUpdate
from .github_api import (
    GitHubCommitAuthor,
    GitHubHeadCommit,
    GitHubRunRepository,
    WorkflowRun,
    WorkflowRunsPage,
)
from .pipeline import PipelineCreate, PipelineRead, PipelineUpdate
from .repository import RepositoryCreate, RepositoryRead, parse_repo_string, parse_repo_url

__all__ = [
    # Base
    "SchemaBase",
    # Builds
    "BuildRead",
    "BuildStatusRead",
    "BuildCreate",
    "BuildUpdate",
    # GitHub API
    "GitHubCommitAuthor",
    "GitHubHeadCommit",
    "GitHubRunRepository",
    "WorkflowRun",
    "WorkflowRunsPage",
    # Pipelines
    "PipelineCreate",
    "PipelineRead",
    "PipelineUpdate",
    # Repository
    "RepositoryCreate",
    "RepositoryRead",
    "parse_repo_string",
    "parse_repo_url",
]
