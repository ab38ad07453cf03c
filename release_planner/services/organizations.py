"""Organization and membership service helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import col, select

from release_planner.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    require_range,
)
from release_planner.core.logging import get_logger
from release_planner.core.time import utcnow
from release_planner.models.organization_members import (
    ADMIN_MEMBER_WEIGHT,
    MAX_MEMBER_WEIGHT,
    OrganizationMember,
)
from release_planner.models.organizations import Organization
from release_planner.models.task_ratings import TaskRating
from release_planner.models.tasks import Task
from release_planner.models.users import User
from release_planner.models.versions import Version, VersionTask
from release_planner.services.weights import get_member

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)


@dataclass(frozen=True)
class OrganizationContext:
    """Resolved organization and membership for the calling user."""

    organization: Organization
    member: OrganizationMember


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_or_create_user(session: AsyncSession, *, email: str) -> User:
    """Return the user with this e-mail, creating a bare record when absent."""
    normalized = normalize_email(email)
    user = await User.objects.filter_by(email=normalized).first(session)
    if user is not None:
        return user
    now = utcnow()
    user = User(email=normalized, created_at=now, updated_at=now)
    session.add(user)
    await session.flush()
    return user


async def create_organization(
    session: AsyncSession,
    *,
    name: str,
    creator: User,
) -> OrganizationContext:
    """Create an organization and enroll its creator with admin weight."""
    now = utcnow()
    organization = Organization(
        name=name.strip(),
        created_by_user_id=creator.id,
        created_at=now,
        updated_at=now,
    )
    session.add(organization)
    await session.flush()

    member = OrganizationMember(
        organization_id=organization.id,
        user_id=creator.id,
        weight=ADMIN_MEMBER_WEIGHT,
        created_at=now,
        updated_at=now,
    )
    session.add(member)
    await session.commit()
    await session.refresh(organization)
    await session.refresh(member)
    logger.info(
        "organizations.created organization_id=%s creator_id=%s",
        organization.id,
        creator.id,
    )
    return OrganizationContext(organization=organization, member=member)


async def add_member(
    session: AsyncSession,
    *,
    organization_id: UUID,
    email: str,
    weight: int = 0,
) -> tuple[OrganizationMember, User]:
    """Enroll a user, found or created by e-mail, with the given weight."""
    require_range(weight, field="weight", maximum=MAX_MEMBER_WEIGHT)
    user = await get_or_create_user(session, email=email)
    existing = await get_member(session, organization_id=organization_id, user_id=user.id)
    if existing is not None:
        raise ConflictError("User is already a member")

    now = utcnow()
    member = OrganizationMember(
        organization_id=organization_id,
        user_id=user.id,
        weight=weight,
        created_at=now,
        updated_at=now,
    )
    session.add(member)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError("User is already a member") from exc
    await session.refresh(member)
    logger.info(
        "organizations.member.added organization_id=%s user_id=%s weight=%s",
        organization_id,
        user.id,
        weight,
    )
    return member, user


async def remove_member(
    session: AsyncSession,
    *,
    organization_id: UUID,
    user_id: UUID,
) -> None:
    """Remove a membership and the member's ratings on the organization's tasks."""
    member = await get_member(session, organization_id=organization_id, user_id=user_id)
    if member is None:
        raise NotFoundError("Member not found in organization")
    org_task_ids = select(Task.id).where(col(Task.organization_id) == organization_id)
    try:
        await session.exec(
            delete(TaskRating).where(
                col(TaskRating.user_id) == user_id,
                col(TaskRating.task_id).in_(org_task_ids),
            ),
        )
        await session.delete(member)
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        raise
    logger.info(
        "organizations.member.removed organization_id=%s user_id=%s",
        organization_id,
        user_id,
    )


async def list_user_organizations(
    session: AsyncSession,
    *,
    user_id: UUID,
) -> list[tuple[Organization, OrganizationMember]]:
    """Return every organization the user belongs to with their membership, by name."""
    statement = (
        select(Organization, OrganizationMember)
        .join(
            OrganizationMember,
            col(OrganizationMember.organization_id) == col(Organization.id),
        )
        .where(col(OrganizationMember.user_id) == user_id)
        .order_by(func.lower(col(Organization.name)).asc(), col(Organization.created_at).asc())
    )
    return [(organization, member) for organization, member in await session.exec(statement)]


async def delete_organization(
    session: AsyncSession,
    *,
    organization: Organization,
    user_id: UUID,
) -> None:
    """Delete an organization with its tasks, ratings, versions and members.

    Only the user who created the organization may delete it.
    """
    if organization.created_by_user_id != user_id:
        raise ForbiddenError("Only the organization creator can delete it")

    org_id = organization.id
    task_ids = select(Task.id).where(col(Task.organization_id) == org_id)
    version_ids = select(Version.id).where(col(Version.organization_id) == org_id)
    try:
        await session.exec(delete(TaskRating).where(col(TaskRating.task_id).in_(task_ids)))
        await session.exec(delete(VersionTask).where(col(VersionTask.version_id).in_(version_ids)))
        await session.exec(delete(Version).where(col(Version.organization_id) == org_id))
        await session.exec(delete(Task).where(col(Task.organization_id) == org_id))
        await session.exec(
            delete(OrganizationMember).where(col(OrganizationMember.organization_id) == org_id),
        )
        await session.delete(organization)
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        raise
    logger.info("organizations.deleted organization_id=%s user_id=%s", org_id, user_id)
