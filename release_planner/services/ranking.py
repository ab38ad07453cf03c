"""Relevance ranking of organization tasks."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from release_planner.core.errors import ValidationError
from release_planner.core.logging import get_logger
from release_planner.services.ratings import list_organization_ratings
from release_planner.services.satisfaction import group_ratings_by_task
from release_planner.services.tasks import list_organization_tasks
from release_planner.services.weights import list_weights

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from release_planner.models.task_ratings import TaskRating
    from release_planner.models.tasks import Task

logger = get_logger(__name__)


@dataclass(frozen=True)
class TaskRelevance:
    """A task paired with its relevance score."""

    task: Task
    relevance_score: float


def relevance_score(ratings: Iterable[TaskRating], weights: Mapping[UUID, int]) -> float:
    """Sum each rater's weighted satisfaction divided by their effort estimate."""
    score = 0.0
    for rating in ratings:
        weight = weights.get(rating.user_id, 0)
        satisfaction = rating.client_satisfaction or 0
        effort = max(rating.effort or 1, 1)
        score += weight * satisfaction / effort
    return score


def rank_tasks(
    tasks: Sequence[Task],
    ratings: Iterable[TaskRating],
    weights: Mapping[UUID, int],
    *,
    limit: int | None = None,
) -> list[TaskRelevance]:
    """Order tasks by relevance, highest first; equal scores keep input order."""
    if limit is not None and limit < 0:
        raise ValidationError("limit must be >= 0", field="limit")
    grouped = group_ratings_by_task(ratings)
    scored = [
        TaskRelevance(task=task, relevance_score=relevance_score(grouped.get(task.id, []), weights))
        for task in tasks
    ]
    ranked = sorted(scored, key=lambda item: item.relevance_score, reverse=True)
    if limit is not None:
        return ranked[:limit]
    return ranked


async def top_tasks(
    session: AsyncSession,
    *,
    organization_id: UUID,
    limit: int = 3,
) -> list[TaskRelevance]:
    """Return up to `limit` of the organization's most relevant tasks."""
    if limit < 0:
        raise ValidationError("limit must be >= 0", field="limit")
    tasks = await list_organization_tasks(session, organization_id=organization_id)
    if not tasks:
        logger.debug("ranking.top_tasks.empty organization_id=%s", organization_id)
        return []
    ratings = await list_organization_ratings(session, organization_id=organization_id)
    weights = await list_weights(session, organization_id=organization_id)
    return rank_tasks(tasks, ratings, weights, limit=limit)
