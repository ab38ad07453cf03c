"""Version snapshots of an organization's task set."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import col

from release_planner.core.errors import ConflictError, NotFoundError, ValidationError
from release_planner.core.logging import get_logger
from release_planner.core.time import utcnow
from release_planner.models.task_ratings import TaskRating
from release_planner.models.tasks import Task
from release_planner.models.versions import Version, VersionTask

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)


@dataclass(frozen=True)
class VersionRestore:
    """Outcome of resetting the task set to a version snapshot."""

    version: Version
    task_count: int
    removed_task_count: int
    removed_version_count: int


async def get_version(
    session: AsyncSession,
    *,
    organization_id: UUID,
    version_id: UUID,
) -> Version:
    """Load a version scoped to an organization or raise `NotFoundError`."""
    version = await Version.objects.by_id(version_id).first(session)
    if version is None or version.organization_id != organization_id:
        raise NotFoundError("Version not found")
    return version


async def list_versions(session: AsyncSession, *, organization_id: UUID) -> list[Version]:
    """Return the organization's versions, newest first."""
    return (
        await Version.objects.filter_by(organization_id=organization_id)
        .order_by(col(Version.created_at).desc())
        .all(session)
    )


async def version_task_ids(session: AsyncSession, *, version: Version) -> set[UUID]:
    """Return the ids of the tasks captured by a version."""
    links = await VersionTask.objects.filter_by(version_id=version.id).all(session)
    return {link.task_id for link in links}


async def create_version(
    session: AsyncSession,
    *,
    organization_id: UUID,
    version_number: str,
) -> tuple[Version, int]:
    """Snapshot every current task of the organization under a new version.

    Returns the version and the number of tasks captured.
    """
    version_number = version_number.strip()
    if not version_number:
        raise ValidationError("version_number must not be empty", field="version_number")
    existing = await Version.objects.filter_by(
        organization_id=organization_id,
        version_number=version_number,
    ).first(session)
    if existing is not None:
        raise ConflictError(f"Version '{version_number}' already exists")

    version = Version(
        organization_id=organization_id,
        version_number=version_number,
        created_at=utcnow(),
    )
    tasks = await Task.objects.filter_by(organization_id=organization_id).all(session)
    session.add(version)
    try:
        await session.flush()
        session.add_all([VersionTask(version_id=version.id, task_id=task.id) for task in tasks])
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError(f"Version '{version_number}' already exists") from exc
    await session.refresh(version)
    logger.info(
        "versions.created version_id=%s organization_id=%s tasks=%s",
        version.id,
        organization_id,
        len(tasks),
    )
    return version, len(tasks)


async def delete_version(
    session: AsyncSession,
    *,
    organization_id: UUID,
    version_id: UUID,
) -> None:
    """Delete a version and its task links in one commit."""
    version = await get_version(session, organization_id=organization_id, version_id=version_id)
    try:
        await session.exec(delete(VersionTask).where(col(VersionTask.version_id) == version.id))
        await session.delete(version)
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        raise
    logger.info(
        "versions.deleted version_id=%s organization_id=%s",
        version_id,
        organization_id,
    )


async def restore_version(
    session: AsyncSession,
    *,
    organization_id: UUID,
    version_id: UUID,
) -> VersionRestore:
    """Reset the organization's task set to a version snapshot.

    Tasks outside the snapshot are deleted with their ratings and version
    links, and every version that captured more tasks than the restored one
    is dropped. The restored version itself is kept. All of it commits
    together.
    """
    version = await get_version(session, organization_id=organization_id, version_id=version_id)
    snapshot = await version_task_ids(session, version=version)

    stale_versions: list[UUID] = []
    for candidate in await list_versions(session, organization_id=organization_id):
        if candidate.id == version.id:
            continue
        if len(await version_task_ids(session, version=candidate)) > len(snapshot):
            stale_versions.append(candidate.id)

    tasks = await Task.objects.filter_by(organization_id=organization_id).all(session)
    stale_tasks = [task.id for task in tasks if task.id not in snapshot]

    try:
        if stale_versions:
            await session.exec(
                delete(VersionTask).where(col(VersionTask.version_id).in_(stale_versions)),
            )
            await session.exec(delete(Version).where(col(Version.id).in_(stale_versions)))
        if stale_tasks:
            await session.exec(delete(TaskRating).where(col(TaskRating.task_id).in_(stale_tasks)))
            await session.exec(delete(VersionTask).where(col(VersionTask.task_id).in_(stale_tasks)))
            await session.exec(delete(Task).where(col(Task.id).in_(stale_tasks)))
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        logger.exception(
            "versions.restore_failed version_id=%s organization_id=%s",
            version_id,
            organization_id,
        )
        raise

    logger.info(
        "versions.restored version_id=%s organization_id=%s removed_tasks=%s removed_versions=%s",
        version_id,
        organization_id,
        len(stale_tasks),
        len(stale_versions),
    )
    return VersionRestore(
        version=version,
        task_count=len(snapshot),
        removed_task_count=len(stale_tasks),
        removed_version_count=len(stale_versions),
    )
