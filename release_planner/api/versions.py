"""Release version snapshot endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, Depends

from release_planner.api.deps import require_org_admin, require_org_member
from release_planner.db.session import get_session
from release_planner.schemas.common import OkResponse
from release_planner.schemas.versions import VersionCreate, VersionRead, VersionRestoreRead
from release_planner.services.versions import (
    create_version,
    delete_version,
    list_versions,
    restore_version,
    version_task_ids,
)

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from release_planner.services.organizations import OrganizationContext

router = APIRouter(prefix="/organizations/{organization_id}/versions", tags=["versions"])
SESSION_DEP = Depends(get_session)
ORG_MEMBER_DEP = Depends(require_org_member)
ORG_ADMIN_DEP = Depends(require_org_admin)


@router.post("", response_model=VersionRead)
async def create_org_version(
    payload: VersionCreate,
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_ADMIN_DEP,
) -> VersionRead:
    """Snapshot the organization's current tasks under a version number."""
    version, task_count = await create_version(
        session,
        organization_id=ctx.organization.id,
        version_number=payload.version_number,
    )
    model = VersionRead.model_validate(version, from_attributes=True)
    model.task_count = task_count
    return model


@router.get("", response_model=list[VersionRead])
async def list_org_versions(
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_MEMBER_DEP,
) -> list[VersionRead]:
    """List the organization's versions, newest first."""
    output: list[VersionRead] = []
    for version in await list_versions(session, organization_id=ctx.organization.id):
        model = VersionRead.model_validate(version, from_attributes=True)
        model.task_count = len(await version_task_ids(session, version=version))
        output.append(model)
    return output


@router.post("/{version_id}/restore", response_model=VersionRestoreRead)
async def restore_org_version(
    version_id: UUID,
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_ADMIN_DEP,
) -> VersionRestoreRead:
    """Reset the task set to this version and drop versions that captured more tasks."""
    result = await restore_version(
        session,
        organization_id=ctx.organization.id,
        version_id=version_id,
    )
    version = VersionRead.model_validate(result.version, from_attributes=True)
    version.task_count = result.task_count
    return VersionRestoreRead(
        version=version,
        removed_task_count=result.removed_task_count,
        removed_version_count=result.removed_version_count,
    )


@router.delete("/{version_id}", response_model=OkResponse)
async def delete_org_version(
    version_id: UUID,
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_ADMIN_DEP,
) -> OkResponse:
    """Delete a version snapshot; tasks are left untouched."""
    await delete_version(session, organization_id=ctx.organization.id, version_id=version_id)
    return OkResponse()
