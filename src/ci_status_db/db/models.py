"""SQLAlchemy ORM models for CI Status DB."""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class BuildStatus(str, Enum):
    """Internal build status.

    GitHub's (status, conclusion) pairs collapse onto these five values;
    see ``ci_status_db.github.sync.status_mapper``.
    """

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


# ------------------------------------------------------------------------------
# Repository model
# ------------------------------------------------------------------------------
class Repository(Base):
    """Locally registered repository whose builds are tracked."""

    __tablename__ = "repositories"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200), unique=True)  # display name, e.g. "widgets"
    github_url: Mapped[str] = mapped_column(String(500))  # "https://github.com/acme/widgets"
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())

    # Relationships
    builds: Mapped[list["Build"]] = relationship(
        back_populates="repository",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Repository(id={self.id}, name='{self.name}')>"


# ------------------------------------------------------------------------------
# Build model
# ------------------------------------------------------------------------------
class Build(Base):
    """One CI build, keyed naturally by the commit it ran against.

    ``commit_sha`` is unique: the sync engine checks it before inserting
    and the constraint settles any race between concurrent syncs.
    """

    __tablename__ = "builds"

    id: Mapped[int] = mapped_column(primary_key=True)
    repository_id: Mapped[int] = mapped_column(ForeignKey("repositories.id", ondelete="CASCADE"))

    status: Mapped[BuildStatus] = mapped_column(default=BuildStatus.PENDING)
    commit_sha: Mapped[str] = mapped_column(String(64), unique=True)

    # Null until GitHub starts the run
    started_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())

    # Relationships
    repository: Mapped["Repository"] = relationship(back_populates="builds")

    def __repr__(self) -> str:
        return (
            f"<Build(id={self.id}, repo={self.repository_id}, "
            f"sha='{self.commit_sha[:7]}', status={self.status.value})>"
        )

    @property
    def is_finished(self) -> bool:
        """Check if the build reached a terminal status."""
        return self.status in (BuildStatus.SUCCESS, BuildStatus.FAILED, BuildStatus.CANCELLED)


# ------------------------------------------------------------------------------
# Pipeline model
# ------------------------------------------------------------------------------
class Pipeline(Base):
    """A named CI pipeline definition, maintained by hand.

    Pipelines are independent of the sync engine. ``repository`` is free
    text (usually ``owner/name``), not a foreign key.
    """

    __tablename__ = "pipelines"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200), unique=True)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    repository: Mapped[str] = mapped_column(String(200))
    branch: Mapped[str] = mapped_column(String(200))
    status: Mapped[BuildStatus] = mapped_column(default=BuildStatus.PENDING)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<Pipeline(id={self.id}, name='{self.name}', status={self.status.value})>"
