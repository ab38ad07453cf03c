"""Task satisfaction aggregated from member weights and valuations."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from release_planner.services.ratings import list_task_ratings
from release_planner.services.weights import list_members

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from release_planner.models.task_ratings import TaskRating
    from release_planner.models.tasks import Task


@dataclass(frozen=True)
class MemberRating:
    """One member's rating of a task alongside their organization weight."""

    user_id: UUID
    organization_weight: int
    client_weight: int = 0
    client_satisfaction: int = 0
    effort: int = 0
    rated: bool = False


@dataclass
class TaskSatisfaction:
    """Aggregate satisfaction for one task and the per-member rows behind it."""

    task_id: UUID
    total_satisfaction: int
    ratings: list[MemberRating] = field(default_factory=list)


def total_satisfaction(
    ratings: Iterable[TaskRating],
    weights: Mapping[UUID, int],
) -> int:
    """Return `sum(weight(member) * client_weight)` over a task's ratings.

    Members without a rating contribute nothing, and raters who are no longer
    members weigh 0. The result is not clamped.
    """
    return sum(weights.get(rating.user_id, 0) * rating.client_weight for rating in ratings)


def group_ratings_by_task(ratings: Iterable[TaskRating]) -> dict[UUID, list[TaskRating]]:
    """Bucket ratings by task id, preserving input order inside each bucket."""
    grouped: dict[UUID, list[TaskRating]] = defaultdict(list)
    for rating in ratings:
        grouped[rating.task_id].append(rating)
    return dict(grouped)


def satisfaction_totals(
    tasks: Iterable[Task],
    ratings: Iterable[TaskRating],
    weights: Mapping[UUID, int],
) -> dict[UUID, int]:
    """Return the aggregate satisfaction of every task, 0 for unrated tasks."""
    grouped = group_ratings_by_task(ratings)
    return {task.id: total_satisfaction(grouped.get(task.id, []), weights) for task in tasks}


async def task_satisfaction(
    session: AsyncSession,
    *,
    organization_id: UUID,
    task: Task,
) -> TaskSatisfaction:
    """Recompute a task's satisfaction with one row per organization member."""
    members = await list_members(session, organization_id=organization_id)
    ratings = await list_task_ratings(session, task_id=task.id)
    weights = {member.user_id: member.weight for member in members}
    by_user = {rating.user_id: rating for rating in ratings}

    rows: list[MemberRating] = []
    for member in members:
        rating = by_user.get(member.user_id)
        if rating is None:
            rows.append(MemberRating(user_id=member.user_id, organization_weight=member.weight))
            continue
        rows.append(
            MemberRating(
                user_id=member.user_id,
                organization_weight=member.weight,
                client_weight=rating.client_weight,
                client_satisfaction=rating.client_satisfaction,
                effort=rating.effort,
                rated=True,
            ),
        )

    return TaskSatisfaction(
        task_id=task.id,
        total_satisfaction=total_satisfaction(ratings, weights),
        ratings=rows,
    )
