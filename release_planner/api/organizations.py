"""Organization management and member weight endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import col, select

from release_planner.api.deps import require_org_admin, require_org_member
from release_planner.core.auth import get_auth_context
from release_planner.db.pagination import paginate
from release_planner.db.session import get_session
from release_planner.models.organization_members import OrganizationMember
from release_planner.models.users import User
from release_planner.schemas.common import OkResponse
from release_planner.schemas.organizations import (
    MemberWeightUpdateResponse,
    OrganizationCreate,
    OrganizationListItem,
    OrganizationMemberCreate,
    OrganizationMemberRead,
    OrganizationMemberWeightUpdate,
    OrganizationRead,
    OrganizationUserRead,
)
from release_planner.schemas.pagination import DefaultLimitOffsetPage
from release_planner.services.organizations import (
    OrganizationContext,
    add_member,
    create_organization,
    delete_organization,
    list_user_organizations,
    remove_member,
)
from release_planner.services.ratings import set_member_weight
from release_planner.services.weights import is_org_admin

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fastapi_pagination.limit_offset import LimitOffsetPage
    from sqlmodel.ext.asyncio.session import AsyncSession

    from release_planner.core.auth import AuthContext

router = APIRouter(prefix="/organizations", tags=["organizations"])
SESSION_DEP = Depends(get_session)
AUTH_DEP = Depends(get_auth_context)
ORG_MEMBER_DEP = Depends(require_org_member)
ORG_ADMIN_DEP = Depends(require_org_admin)


def _member_to_read(
    member: OrganizationMember,
    user: User | None,
) -> OrganizationMemberRead:
    model = OrganizationMemberRead.model_validate(member, from_attributes=True)
    if user is not None:
        model.user = OrganizationUserRead.model_validate(user, from_attributes=True)
    return model


@router.post("", response_model=OrganizationRead)
async def create_org(
    payload: OrganizationCreate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> OrganizationRead:
    """Create an organization and enroll the caller with admin weight."""
    if auth.user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    if not payload.name.strip():
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_CONTENT)
    ctx = await create_organization(session, name=payload.name, creator=auth.user)
    return OrganizationRead.model_validate(ctx.organization, from_attributes=True)


@router.get("", response_model=list[OrganizationListItem])
async def list_my_orgs(
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> list[OrganizationListItem]:
    """List organizations the caller belongs to, by name."""
    if auth.user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    rows = await list_user_organizations(session, user_id=auth.user.id)
    return [
        OrganizationListItem(
            id=organization.id,
            name=organization.name,
            weight=member.weight,
            is_admin=is_org_admin(member),
        )
        for organization, member in rows
    ]


@router.get("/{organization_id}", response_model=OrganizationRead)
async def get_org(
    ctx: OrganizationContext = ORG_MEMBER_DEP,
) -> OrganizationRead:
    """Return an organization the caller belongs to."""
    return OrganizationRead.model_validate(ctx.organization, from_attributes=True)


@router.delete("/{organization_id}", response_model=OkResponse)
async def delete_org(
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_MEMBER_DEP,
) -> OkResponse:
    """Delete the organization and everything in it; creator only."""
    await delete_organization(
        session,
        organization=ctx.organization,
        user_id=ctx.member.user_id,
    )
    return OkResponse()


@router.get(
    "/{organization_id}/members",
    response_model=DefaultLimitOffsetPage[OrganizationMemberRead],
)
async def list_org_members(
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_MEMBER_DEP,
) -> LimitOffsetPage[OrganizationMemberRead]:
    """List members of the organization with their weights."""
    statement = (
        select(OrganizationMember, User)
        .join(User, col(User.id) == col(OrganizationMember.user_id))
        .where(col(OrganizationMember.organization_id) == ctx.organization.id)
        .order_by(col(OrganizationMember.created_at).asc(), col(User.email).asc())
    )

    def _transform(items: Sequence[Any]) -> Sequence[Any]:
        return [_member_to_read(member, user) for member, user in items]

    return await paginate(session, statement, transformer=_transform)


@router.post("/{organization_id}/members", response_model=OrganizationMemberRead)
async def add_org_member(
    payload: OrganizationMemberCreate,
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_ADMIN_DEP,
) -> OrganizationMemberRead:
    """Enroll a user by e-mail with an initial weight."""
    member, user = await add_member(
        session,
        organization_id=ctx.organization.id,
        email=payload.email,
        weight=payload.weight,
    )
    return _member_to_read(member, user)


@router.patch(
    "/{organization_id}/members/{user_id}",
    response_model=MemberWeightUpdateResponse,
)
async def update_member_weight(
    user_id: UUID,
    payload: OrganizationMemberWeightUpdate,
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_ADMIN_DEP,
) -> MemberWeightUpdateResponse:
    """Change a member's weight and re-derive satisfaction on their ratings."""
    result = await set_member_weight(
        session,
        organization_id=ctx.organization.id,
        user_id=user_id,
        weight=payload.weight,
    )
    return MemberWeightUpdateResponse(
        weight=result.member.weight,
        previous_weight=result.previous_weight,
        updated_ratings_count=result.updated_ratings_count,
    )


@router.delete("/{organization_id}/members/{user_id}", response_model=OkResponse)
async def remove_org_member(
    user_id: UUID,
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_ADMIN_DEP,
) -> OkResponse:
    """Remove a member together with their ratings in this organization."""
    if user_id == ctx.member.user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admins cannot remove themselves",
        )
    await remove_member(session, organization_id=ctx.organization.id, user_id=user_id)
    return OkResponse()
