"""Schemas for member ratings and task satisfaction payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Self
from uuid import UUID

from pydantic import model_validator
from sqlmodel import Field, SQLModel

_ERR_EMPTY_UPDATE = "effort or client_weight is required"
RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class RatingUpdate(SQLModel):
    """Partial update of the caller's rating; fields are applied independently."""

    effort: int | None = Field(default=None, ge=0)
    client_weight: int | None = Field(default=None, ge=0, le=5)

    @model_validator(mode="after")
    def validate_not_empty(self) -> Self:
        """Require at least one rating field."""
        if self.effort is None and self.client_weight is None:
            raise ValueError(_ERR_EMPTY_UPDATE)
        return self


class TaskRatingRead(SQLModel):
    """Stored rating row for one member and task."""

    id: UUID
    task_id: UUID
    user_id: UUID
    effort: int
    client_weight: int
    client_satisfaction: int
    created_at: datetime
    updated_at: datetime


class MemberRatingRead(SQLModel):
    """Per-member rating row inside a task satisfaction payload."""

    user_id: UUID
    organization_weight: int
    client_weight: int = 0
    client_satisfaction: int = 0
    effort: int = 0
    rated: bool = False


class TaskSatisfactionRead(SQLModel):
    """Aggregate satisfaction for one task."""

    task_id: UUID
    total_satisfaction: int = Field(
        description="Sum over raters of organization weight times valuation; not clamped.",
        schema_extra={"examples": [32]},
    )
    ratings: list[MemberRatingRead] = Field(default_factory=list)
