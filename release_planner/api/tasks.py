"""Task CRUD and per-member rating endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends

from release_planner.api.deps import get_task_or_404, require_org_admin, require_org_member
from release_planner.db.pagination import paginate
from release_planner.db.session import get_session
from release_planner.schemas.common import OkResponse
from release_planner.schemas.pagination import DefaultLimitOffsetPage
from release_planner.schemas.ratings import (
    MemberRatingRead,
    RatingUpdate,
    TaskRatingRead,
    TaskSatisfactionRead,
)
from release_planner.schemas.tasks import TaskCreate, TaskRead, TaskUpdate
from release_planner.services.ratings import update_rating
from release_planner.services.satisfaction import task_satisfaction
from release_planner.services.tasks import (
    create_task,
    delete_task,
    organization_tasks_statement,
    update_task,
)

if TYPE_CHECKING:
    from fastapi_pagination.limit_offset import LimitOffsetPage
    from sqlmodel.ext.asyncio.session import AsyncSession

    from release_planner.models.tasks import Task
    from release_planner.services.organizations import OrganizationContext

router = APIRouter(prefix="/organizations/{organization_id}/tasks", tags=["tasks"])
SESSION_DEP = Depends(get_session)
ORG_MEMBER_DEP = Depends(require_org_member)
ORG_ADMIN_DEP = Depends(require_org_admin)
TASK_DEP = Depends(get_task_or_404)


@router.get("", response_model=DefaultLimitOffsetPage[TaskRead])
async def list_tasks(
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_MEMBER_DEP,
) -> LimitOffsetPage[TaskRead]:
    """List the organization's tasks in creation order."""
    return await paginate(session, organization_tasks_statement(ctx.organization.id))


@router.post("", response_model=TaskRead)
async def create_org_task(
    payload: TaskCreate,
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_ADMIN_DEP,
) -> Task:
    """Create a task in the organization."""
    return await create_task(
        session,
        organization_id=ctx.organization.id,
        creator_id=ctx.member.user_id,
        payload=payload,
    )


@router.patch("/{task_id}", response_model=TaskRead)
async def update_org_task(
    payload: TaskUpdate,
    task: Task = TASK_DEP,
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_MEMBER_DEP,
) -> Task:
    """Apply a partial update; only the task's creator may do so."""
    return await update_task(session, task=task, user_id=ctx.member.user_id, payload=payload)


@router.delete("/{task_id}", response_model=OkResponse)
async def delete_org_task(
    task: Task = TASK_DEP,
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_MEMBER_DEP,
) -> OkResponse:
    """Delete a task with its ratings; only the task's creator may do so."""
    await delete_task(session, task=task, user_id=ctx.member.user_id)
    return OkResponse()


@router.get("/{task_id}/ratings", response_model=TaskSatisfactionRead)
async def get_task_ratings(
    task: Task = TASK_DEP,
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_MEMBER_DEP,
) -> TaskSatisfactionRead:
    """Return the task's aggregate satisfaction and one row per member."""
    result = await task_satisfaction(session, organization_id=ctx.organization.id, task=task)
    return TaskSatisfactionRead(
        task_id=result.task_id,
        total_satisfaction=result.total_satisfaction,
        ratings=[
            MemberRatingRead.model_validate(row, from_attributes=True) for row in result.ratings
        ],
    )


@router.patch("/{task_id}/rating", response_model=TaskRatingRead)
async def update_my_rating(
    payload: RatingUpdate,
    task: Task = TASK_DEP,
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_MEMBER_DEP,
) -> TaskRatingRead:
    """Update the caller's effort estimate and/or valuation of a task."""
    rating = await update_rating(
        session,
        task_id=task.id,
        organization_id=ctx.organization.id,
        user_id=ctx.member.user_id,
        effort=payload.effort,
        client_weight=payload.client_weight,
    )
    return TaskRatingRead.model_validate(rating, from_attributes=True)
