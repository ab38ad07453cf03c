"""Schemas for task create/update/read API operations."""

from __future__ import annotations

from datetime import datetime
from typing import Self
from uuid import UUID

from pydantic import model_validator
from sqlmodel import Field, SQLModel

_ERR_NAME_REQUIRED = "name is required"
RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class TaskBase(SQLModel):
    """Shared task fields used across create and read payloads."""

    name: str
    description: str | None = None
    effort: int = Field(default=0, ge=0)
    progress: int = Field(default=0, ge=0, le=100)
    deselected: bool = False


class TaskCreate(TaskBase):
    """Payload for creating a task."""

    @model_validator(mode="after")
    def validate_name(self) -> Self:
        """Reject blank task names."""
        name = self.name.strip()
        if not name:
            raise ValueError(_ERR_NAME_REQUIRED)
        self.name = name
        return self


class TaskUpdate(SQLModel):
    """Payload for partial task updates."""

    name: str | None = None
    description: str | None = None
    effort: int | None = Field(default=None, ge=0)
    progress: int | None = Field(default=None, ge=0, le=100)
    deselected: bool | None = None


class TaskRead(TaskBase):
    """Task payload returned from read endpoints."""

    id: UUID
    organization_id: UUID
    created_by_user_id: UUID | None = None
    created_at: datetime
    updated_at: datetime
