"""Version snapshot models recording an organization's task set."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from release_planner.core.time import utcnow
from release_planner.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Version(QueryModel, table=True):
    """Named release snapshot inside an organization."""

    __tablename__ = "versions"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        UniqueConstraint(
            "organization_id",
            "version_number",
            name="uq_versions_org_number",
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    organization_id: UUID = Field(foreign_key="organizations.id", index=True)
    version_number: str
    created_at: datetime = Field(default_factory=utcnow)


class VersionTask(QueryModel, table=True):
    """Task membership of a version snapshot."""

    __tablename__ = "version_tasks"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        UniqueConstraint(
            "version_id",
            "task_id",
            name="uq_version_tasks_version_task",
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    version_id: UUID = Field(foreign_key="versions.id", index=True)
    task_id: UUID = Field(foreign_key="tasks.id", index=True)
