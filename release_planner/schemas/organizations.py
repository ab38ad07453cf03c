"""Schemas for organization and membership API payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlmodel import Field, SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class OrganizationRead(SQLModel):
    """Organization payload returned by read endpoints."""

    id: UUID
    name: str
    created_by_user_id: UUID | None = None
    created_at: datetime
    updated_at: datetime


class OrganizationCreate(SQLModel):
    """Payload for creating a new organization."""

    name: str = Field(min_length=1)


class OrganizationUserRead(SQLModel):
    """Embedded user fields included in organization member payloads."""

    id: UUID
    email: str | None = None
    name: str | None = None


class OrganizationMemberRead(SQLModel):
    """Organization member payload with its weight."""

    id: UUID
    organization_id: UUID
    user_id: UUID
    weight: int
    created_at: datetime
    updated_at: datetime
    user: OrganizationUserRead | None = None


class OrganizationMemberCreate(SQLModel):
    """Payload for enrolling an existing user by e-mail."""

    email: str = Field(min_length=3)
    weight: int = Field(default=0, ge=0, le=5)


class OrganizationMemberWeightUpdate(SQLModel):
    """Payload for changing a member's organization weight."""

    weight: int = Field(ge=0, le=5)


class MemberWeightUpdateResponse(SQLModel):
    """Result of a weight change, including how many ratings were re-derived."""

    weight: int
    previous_weight: int
    updated_ratings_count: int


class OrganizationListItem(SQLModel):
    """Organization summary with the caller's weight in it."""

    id: UUID
    name: str
    weight: int
    is_admin: bool
