"""Per-member task rating: effort estimate, valuation and weighted satisfaction."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from release_planner.core.time import utcnow
from release_planner.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)

MIN_SATISFACTION = 0
MAX_SATISFACTION = 5
MAX_CLIENT_WEIGHT = 5


class TaskRating(QueryModel, table=True):
    """One member's evaluation of one task."""

    __tablename__ = "task_ratings"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        UniqueConstraint(
            "task_id",
            "user_id",
            name="uq_task_ratings_task_user",
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    task_id: UUID = Field(foreign_key="tasks.id", index=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    effort: int = Field(default=0)
    client_weight: int = Field(default=0)
    client_satisfaction: int = Field(default=0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
