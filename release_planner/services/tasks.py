"""Task persistence helpers scoped to an organization."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import delete
from sqlmodel import col, select

from release_planner.core.errors import ForbiddenError, require_range
from release_planner.core.logging import get_logger
from release_planner.core.time import utcnow
from release_planner.models.task_ratings import TaskRating
from release_planner.models.tasks import Task
from release_planner.models.versions import VersionTask

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession
    from sqlmodel.sql.expression import SelectOfScalar

    from release_planner.schemas.tasks import TaskCreate, TaskUpdate

logger = get_logger(__name__)

MAX_PROGRESS = 100


def organization_tasks_statement(organization_id: UUID) -> SelectOfScalar[Task]:
    """Select the organization's tasks in creation order."""
    return (
        select(Task)
        .where(col(Task.organization_id) == organization_id)
        .order_by(col(Task.created_at).asc(), col(Task.id).asc())
    )


async def list_organization_tasks(
    session: AsyncSession,
    *,
    organization_id: UUID,
) -> list[Task]:
    """Return the organization's tasks in creation order."""
    return list(await session.exec(organization_tasks_statement(organization_id)))


def _validate_task_fields(values: dict[str, Any]) -> None:
    if values.get("effort") is not None:
        require_range(values["effort"], field="effort")
    if values.get("progress") is not None:
        require_range(values["progress"], field="progress", maximum=MAX_PROGRESS)


async def create_task(
    session: AsyncSession,
    *,
    organization_id: UUID,
    creator_id: UUID,
    payload: TaskCreate,
) -> Task:
    """Create a task owned by the organization and attributed to its creator."""
    values = payload.model_dump()
    _validate_task_fields(values)
    now = utcnow()
    task = Task(
        organization_id=organization_id,
        created_by_user_id=creator_id,
        created_at=now,
        updated_at=now,
        **values,
    )
    session.add(task)
    await session.commit()
    await session.refresh(task)
    logger.info("tasks.created task_id=%s organization_id=%s", task.id, organization_id)
    return task


def _require_creator(task: Task, user_id: UUID) -> None:
    if task.created_by_user_id != user_id:
        raise ForbiddenError("Only the task creator can change this task")


async def update_task(
    session: AsyncSession,
    *,
    task: Task,
    user_id: UUID,
    payload: TaskUpdate,
) -> Task:
    """Apply a partial update from the task's creator."""
    _require_creator(task, user_id)
    updates = payload.model_dump(exclude_unset=True)
    _validate_task_fields(updates)
    for key, value in updates.items():
        setattr(task, key, value)
    task.updated_at = utcnow()
    session.add(task)
    await session.commit()
    await session.refresh(task)
    return task


async def delete_task(session: AsyncSession, *, task: Task, user_id: UUID) -> None:
    """Delete a task together with its ratings and version links."""
    _require_creator(task, user_id)
    await session.exec(delete(TaskRating).where(col(TaskRating.task_id) == task.id))
    await session.exec(delete(VersionTask).where(col(VersionTask.task_id) == task.id))
    await session.delete(task)
    await session.commit()
    logger.info("tasks.deleted task_id=%s organization_id=%s", task.id, task.organization_id)
