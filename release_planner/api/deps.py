"""Reusable FastAPI dependencies for auth and organization/task access.

Routers compose these instead of re-implementing membership checks:
- `require_org_member` resolves the organization from the path and the
  caller's membership in it
- `require_org_admin` additionally requires admin weight
- `get_task_or_404` loads a task scoped to the resolved organization
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import Depends, HTTPException, status

from release_planner.core.auth import AuthContext, get_auth_context
from release_planner.db.session import get_session
from release_planner.models.organizations import Organization
from release_planner.services.organizations import OrganizationContext
from release_planner.services.ratings import get_task_in_organization
from release_planner.services.weights import get_member, is_org_admin

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from release_planner.models.tasks import Task

AUTH_DEP = Depends(get_auth_context)
SESSION_DEP = Depends(get_session)


async def require_org_member(
    organization_id: UUID,
    auth: AuthContext = AUTH_DEP,
    session: AsyncSession = SESSION_DEP,
) -> OrganizationContext:
    """Resolve the path organization and require the caller's membership."""
    if auth.user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    organization = await Organization.objects.by_id(organization_id).first(session)
    if organization is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    member = await get_member(
        session,
        organization_id=organization.id,
        user_id=auth.user.id,
    )
    if member is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)
    return OrganizationContext(organization=organization, member=member)


ORG_MEMBER_DEP = Depends(require_org_member)


async def require_org_admin(
    ctx: OrganizationContext = ORG_MEMBER_DEP,
) -> OrganizationContext:
    """Require organization-admin membership privileges."""
    if not is_org_admin(ctx.member):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)
    return ctx


async def get_task_or_404(
    task_id: UUID,
    ctx: OrganizationContext = ORG_MEMBER_DEP,
    session: AsyncSession = SESSION_DEP,
) -> Task:
    """Load a task in the caller's organization or raise HTTP 404."""
    return await get_task_in_organization(
        session,
        task_id=task_id,
        organization_id=ctx.organization.id,
    )
