"""Task model representing organization work items and their effort."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field

from release_planner.core.time import utcnow
from release_planner.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Task(QueryModel, table=True):
    """Organization-scoped task with effort, progress and selection flag."""

    __tablename__ = "tasks"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    organization_id: UUID = Field(foreign_key="organizations.id", index=True)

    name: str
    description: str | None = None
    effort: int = Field(default=0)
    progress: int = Field(default=0)
    deselected: bool = Field(default=False, index=True)

    created_by_user_id: UUID | None = Field(
        default=None,
        foreign_key="users.id",
        index=True,
    )

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
