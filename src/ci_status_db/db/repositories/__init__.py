"""Repository pattern implementation for database access.

This module provides repository classes that encapsulate all database
access logic, providing a clean abstraction over SQLAlchemy models.
"""

from .base import BaseRepository
from .build import BuildRepository
from .pipeline import PipelineRepository
from .repository import RepositoryRepository

__all__ = [
    "BaseRepository",
    "BuildRepository",
    "PipelineRepository",
    "RepositoryRepository",
]
