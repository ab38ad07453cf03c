"""Organization membership model carrying the member's voting weight."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from release_planner.core.time import utcnow
from release_planner.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)

MAX_MEMBER_WEIGHT = 5
ADMIN_MEMBER_WEIGHT = 5


class OrganizationMember(QueryModel, table=True):
    """Membership row linking a user to an organization with a weight in [0, 5]."""

    __tablename__ = "organization_members"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        UniqueConstraint(
            "organization_id",
            "user_id",
            name="uq_organization_members_org_user",
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    organization_id: UUID = Field(foreign_key="organizations.id", index=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    weight: int = Field(default=0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
