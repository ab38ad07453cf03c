"""Per-member task rating ledger and incremental satisfaction recomputation.

Every stored `TaskRating.client_satisfaction` is an integer rounded half-up
and clamped to [0, 5]. Task-level sums built from these rows (see
`services.satisfaction` and `services.solutions`) are never clamped.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import col, select

from release_planner.core.errors import NotFoundError, ValidationError, require_range
from release_planner.core.logging import get_logger
from release_planner.core.time import utcnow
from release_planner.models.organization_members import (
    MAX_MEMBER_WEIGHT,
    OrganizationMember,
)
from release_planner.models.task_ratings import (
    MAX_CLIENT_WEIGHT,
    MAX_SATISFACTION,
    MIN_SATISFACTION,
    TaskRating,
)
from release_planner.models.tasks import Task
from release_planner.services.weights import get_member, list_weights

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)


@dataclass(frozen=True)
class MemberWeightUpdate:
    """Outcome of a member weight change and its rating fan-out."""

    member: OrganizationMember
    previous_weight: int
    updated_ratings_count: int


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return math.floor(value + 0.5)


def clamp_satisfaction(value: float) -> int:
    """Round and clamp a per-rating satisfaction into [0, 5]."""
    return min(MAX_SATISFACTION, max(MIN_SATISFACTION, round_half_up(value)))


def initial_satisfaction(organization_weights: Iterable[int], client_weight: int) -> int:
    """Seed satisfaction from the sum of every member weight times the valuation."""
    return clamp_satisfaction(sum(organization_weights) * client_weight)


def rescaled_satisfaction(
    previous_satisfaction: int,
    previous_client_weight: int,
    client_weight: int,
) -> int:
    """Scale a prior satisfaction proportionally to a new valuation."""
    if previous_client_weight == 0:
        raise ValueError("previous_client_weight must be non-zero to rescale")
    return clamp_satisfaction(previous_satisfaction * client_weight / previous_client_weight)


def reweighted_satisfaction(
    satisfaction: int,
    client_weight: int,
    *,
    previous_weight: int,
    new_weight: int,
) -> int:
    """Swap a member's weighted contribution inside a stored satisfaction."""
    adjusted = satisfaction - previous_weight * client_weight + new_weight * client_weight
    return clamp_satisfaction(adjusted)


def valuation_base(
    own: TaskRating | None,
    task_ratings: Iterable[TaskRating],
) -> TaskRating | None:
    """Pick the rating a new valuation is scaled from.

    The caller's own valued rating wins, then the earliest valued rating any
    member left on the task. `None` means the task has no valuation to scale.
    """
    if own is not None and own.client_weight != 0:
        return own
    for rating in task_ratings:
        if rating.client_weight != 0:
            return rating
    return None


def valuation_satisfaction(
    previous: TaskRating | None,
    client_weight: int,
    organization_weights: Iterable[int],
) -> int:
    """Compute the satisfaction stored alongside a new valuation.

    `previous` is the base chosen by `valuation_base`.
    """
    if client_weight == 0:
        return 0
    if previous is not None and previous.client_weight != 0:
        if previous.client_weight == client_weight:
            return previous.client_satisfaction
        return rescaled_satisfaction(
            previous.client_satisfaction,
            previous.client_weight,
            client_weight,
        )
    return initial_satisfaction(organization_weights, client_weight)


async def get_task_in_organization(
    session: AsyncSession,
    *,
    task_id: UUID,
    organization_id: UUID,
) -> Task:
    """Load a task scoped to an organization or raise `NotFoundError`."""
    task = await Task.objects.by_id(task_id).first(session)
    if task is None or task.organization_id != organization_id:
        raise NotFoundError("Task not found")
    return task


async def get_rating(
    session: AsyncSession,
    *,
    task_id: UUID,
    user_id: UUID,
) -> TaskRating | None:
    """Fetch the (task, user) rating row, if present."""
    return await TaskRating.objects.filter_by(task_id=task_id, user_id=user_id).first(session)


async def list_task_ratings(session: AsyncSession, *, task_id: UUID) -> list[TaskRating]:
    """Return every rating recorded for a task, oldest first."""
    return (
        await TaskRating.objects.filter_by(task_id=task_id)
        .order_by(col(TaskRating.created_at).asc())
        .all(session)
    )


async def list_organization_ratings(
    session: AsyncSession,
    *,
    organization_id: UUID,
    user_id: UUID | None = None,
) -> list[TaskRating]:
    """Return ratings on the organization's tasks, optionally for one member."""
    org_task_ids = select(Task.id).where(col(Task.organization_id) == organization_id)
    query = TaskRating.objects.filter(col(TaskRating.task_id).in_(org_task_ids))
    if user_id is not None:
        query = query.filter_by(user_id=user_id)
    return await query.order_by(col(TaskRating.created_at).asc()).all(session)


async def _require_member(
    session: AsyncSession,
    *,
    organization_id: UUID,
    user_id: UUID,
) -> OrganizationMember:
    member = await get_member(session, organization_id=organization_id, user_id=user_id)
    if member is None:
        raise NotFoundError("Member not found in organization")
    return member


async def _save_rating(
    session: AsyncSession,
    *,
    task_id: UUID,
    user_id: UUID,
    apply: Callable[[TaskRating | None], TaskRating],
) -> TaskRating:
    """Upsert a rating; a lost insert race re-applies the change to the winner's row."""
    rating = apply(await get_rating(session, task_id=task_id, user_id=user_id))
    session.add(rating)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        existing = await get_rating(session, task_id=task_id, user_id=user_id)
        if existing is None:
            raise
        rating = apply(existing)
        session.add(rating)
        await session.commit()
    await session.refresh(rating)
    return rating


async def update_rating(
    session: AsyncSession,
    *,
    task_id: UUID,
    organization_id: UUID,
    user_id: UUID,
    effort: int | None = None,
    client_weight: int | None = None,
) -> TaskRating:
    """Apply an effort estimate and/or a valuation to one rating in a single commit.

    Both values are validated before anything is written.
    """
    if effort is None and client_weight is None:
        raise ValidationError("Provide effort or client_weight")
    if effort is not None:
        require_range(effort, field="effort")
    if client_weight is not None:
        require_range(client_weight, field="client_weight", maximum=MAX_CLIENT_WEIGHT)
    await get_task_in_organization(session, task_id=task_id, organization_id=organization_id)
    await _require_member(session, organization_id=organization_id, user_id=user_id)
    weights: dict[UUID, int] = {}
    shared: list[TaskRating] = []
    if client_weight is not None:
        weights = await list_weights(session, organization_id=organization_id)
        found = valuation_base(None, await list_task_ratings(session, task_id=task_id))
        if found is not None:
            # Detached copy: a rollback in the retry path expires loaded rows.
            shared.append(
                TaskRating(
                    task_id=task_id,
                    user_id=found.user_id,
                    client_weight=found.client_weight,
                    client_satisfaction=found.client_satisfaction,
                ),
            )

    def apply(existing: TaskRating | None) -> TaskRating:
        now = utcnow()
        rating = existing
        if rating is None:
            rating = TaskRating(task_id=task_id, user_id=user_id, created_at=now)
        if effort is not None:
            rating.effort = effort
        if client_weight is not None:
            base = valuation_base(existing, shared)
            rating.client_satisfaction = valuation_satisfaction(
                base,
                client_weight,
                weights.values(),
            )
            rating.client_weight = client_weight
        rating.updated_at = now
        return rating

    rating = await _save_rating(session, task_id=task_id, user_id=user_id, apply=apply)
    if effort is not None:
        logger.info(
            "ratings.effort.updated task_id=%s user_id=%s effort=%s",
            task_id,
            user_id,
            rating.effort,
        )
    if client_weight is not None:
        logger.info(
            "ratings.valuation.updated task_id=%s user_id=%s client_weight=%s satisfaction=%s",
            task_id,
            user_id,
            rating.client_weight,
            rating.client_satisfaction,
        )
    return rating


async def set_effort(
    session: AsyncSession,
    *,
    task_id: UUID,
    organization_id: UUID,
    user_id: UUID,
    effort: int,
) -> TaskRating:
    """Record a member's effort estimate without touching valuation fields."""
    return await update_rating(
        session,
        task_id=task_id,
        organization_id=organization_id,
        user_id=user_id,
        effort=effort,
    )


async def set_valuation(
    session: AsyncSession,
    *,
    task_id: UUID,
    organization_id: UUID,
    user_id: UUID,
    client_weight: int,
) -> TaskRating:
    """Record a member's valuation and recompute its weighted satisfaction."""
    return await update_rating(
        session,
        task_id=task_id,
        organization_id=organization_id,
        user_id=user_id,
        client_weight=client_weight,
    )


async def set_member_weight(
    session: AsyncSession,
    *,
    organization_id: UUID,
    user_id: UUID,
    weight: int,
) -> MemberWeightUpdate:
    """Change a member's weight and re-derive satisfaction on each of their ratings.

    The rating fan-out and the membership write commit together; any failure
    rolls the whole batch back.
    """
    require_range(weight, field="weight", maximum=MAX_MEMBER_WEIGHT)
    member = await _require_member(session, organization_id=organization_id, user_id=user_id)
    previous_weight = member.weight
    ratings = await list_organization_ratings(
        session,
        organization_id=organization_id,
        user_id=user_id,
    )

    now = utcnow()
    try:
        for rating in ratings:
            rating.client_satisfaction = reweighted_satisfaction(
                rating.client_satisfaction,
                rating.client_weight,
                previous_weight=previous_weight,
                new_weight=weight,
            )
            rating.updated_at = now
            session.add(rating)
        member.weight = weight
        member.updated_at = now
        session.add(member)
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        logger.exception(
            "members.weight.update_failed organization_id=%s user_id=%s",
            organization_id,
            user_id,
        )
        raise

    await session.refresh(member)
    logger.info(
        "members.weight.updated organization_id=%s user_id=%s previous=%s weight=%s ratings=%s",
        organization_id,
        user_id,
        previous_weight,
        weight,
        len(ratings),
    )
    return MemberWeightUpdate(
        member=member,
        previous_weight=previous_weight,
        updated_ratings_count=len(ratings),
    )
