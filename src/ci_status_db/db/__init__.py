"""Database module for CI Status DB."""

from ci_status_db.db.engine import (
    create_tables,
    dispose_engine,
    drop_tables,
    get_engine,
    get_session,
    get_session_factory,
)
from ci_status_db.db.models import Base, Build, BuildStatus, Pipeline, Repository
from ci_status_db.db.repositories import (
    BaseRepository,
    BuildRepository,
    PipelineRepository,
    RepositoryRepository,
)

__all__ = [
    # Models
    "Base",
    "Build",
    "BuildStatus",
    "Pipeline",
    "Repository",
    # Engine
    "create_tables",
    "dispose_engine",
    "drop_tables",
    "get_engine",
    "get_session",
    "get_session_factory",
    # Repositories
    "BaseRepository",
    "BuildRepository",
    "PipelineRepository",
    "RepositoryRepository",
]
