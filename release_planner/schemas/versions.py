"""Schemas for release version payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlmodel import Field, SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class VersionCreate(SQLModel):
    """Payload for snapshotting the current tasks as a version."""

    version_number: str = Field(min_length=1, max_length=64)


class VersionRead(SQLModel):
    """Version payload returned by read endpoints."""

    id: UUID
    organization_id: UUID
    version_number: str
    created_at: datetime
    task_count: int = 0


class VersionRestoreRead(SQLModel):
    """Result of resetting the task set to a version snapshot."""

    version: VersionRead
    removed_task_count: int
    removed_version_count: int
