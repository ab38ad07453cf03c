"""Read-only view of member voting weights within an organization."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlmodel import col

from release_planner.models.organization_members import (
    ADMIN_MEMBER_WEIGHT,
    OrganizationMember,
)

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession


def is_org_admin(member: OrganizationMember) -> bool:
    """Return whether a member carries admin-level weight."""
    return member.weight >= ADMIN_MEMBER_WEIGHT


async def get_member(
    session: AsyncSession,
    *,
    organization_id: UUID,
    user_id: UUID,
) -> OrganizationMember | None:
    """Fetch a membership by organization id and user id."""
    return await OrganizationMember.objects.filter_by(
        organization_id=organization_id,
        user_id=user_id,
    ).first(session)


async def get_weight(
    session: AsyncSession,
    *,
    organization_id: UUID,
    user_id: UUID,
) -> int:
    """Return the member's weight, or 0 when the user is not a member.

    Callers that need to tell "not a member" from "member with weight 0"
    must use `get_member` instead.
    """
    member = await get_member(session, organization_id=organization_id, user_id=user_id)
    if member is None:
        return 0
    return member.weight


async def list_members(
    session: AsyncSession,
    *,
    organization_id: UUID,
) -> list[OrganizationMember]:
    """Return all memberships of an organization, oldest first."""
    return (
        await OrganizationMember.objects.filter_by(organization_id=organization_id)
        .order_by(col(OrganizationMember.created_at).asc())
        .all(session)
    )


async def list_weights(
    session: AsyncSession,
    *,
    organization_id: UUID,
) -> dict[UUID, int]:
    """Return a `user_id -> weight` mapping for every member of the organization."""
    members = await list_members(session, organization_id=organization_id)
    return {member.user_id: member.weight for member in members}
