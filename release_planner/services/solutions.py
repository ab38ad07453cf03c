"""Effort-budgeted release solution built by a greedy accept/skip pass.

Tasks are considered in a fixed priority order (satisfaction, then
productivity) and each one is accepted only if it still fits the remaining
budget. A task that does not fit is skipped, never swapped for a cheaper one,
so the result is a greedy approximation and not an optimal knapsack.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from release_planner.core.errors import require_range
from release_planner.core.logging import get_logger
from release_planner.services.ratings import list_organization_ratings, round_half_up
from release_planner.services.satisfaction import group_ratings_by_task, total_satisfaction
from release_planner.services.tasks import list_organization_tasks
from release_planner.services.versions import get_version, version_task_ids
from release_planner.services.weights import list_weights

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from release_planner.models.task_ratings import TaskRating
    from release_planner.models.tasks import Task

logger = get_logger(__name__)

Priority = Literal["high", "medium"]


@dataclass(frozen=True)
class RatingSummary:
    """Task-level view of the ratings used for selection."""

    client_satisfaction: int = 0
    client_weight: int = 0
    effort: int = 0


@dataclass(frozen=True)
class ClientContribution:
    """How one rating member's valuation feeds a selected task."""

    user_id: UUID
    organization_weight: int
    valuation: int
    satisfaction: int
    coverage: float
    contribution_to_total: float
    contribution_to_requirement: float


@dataclass
class SolutionItem:
    """A candidate task with its selection metrics."""

    task: Task
    rating: RatingSummary
    productivity: float
    contribution_to_total: float
    contribution_to_requirement: float
    priority: Priority
    clients: list[ClientContribution] = field(default_factory=list)


@dataclass(frozen=True)
class SolutionMetrics:
    """Aggregates over the selected tasks."""

    total_productivity: float = 0.0
    coverage: float = 0.0
    total_effort: int = 0
    total_satisfaction: int = 0


@dataclass
class Solution:
    """Selected tasks, ordered by priority, plus global metrics."""

    effort_limit: int
    effort_filter: int | None
    effective_effort_limit: int
    items: list[SolutionItem]
    metrics: SolutionMetrics
    candidate_count: int
    deselected_count: int


def effective_effort_limit(effort_limit: int, effort_filter: int | None) -> int:
    """Apply the optional per-call filter cap on top of the effort limit."""
    if effort_filter is not None and effort_filter > 0:
        return min(effort_filter, effort_limit)
    return effort_limit


def productivity(satisfaction: float, effort: float) -> float:
    """Satisfaction per unit of effort; 0 when either side is 0."""
    if not satisfaction or effort <= 0:
        return 0.0
    return satisfaction / effort


def contribution(part: float, total: float) -> float:
    """Share of `total` carried by `part`; 0 when the total is 0."""
    if not part or total <= 0:
        return 0.0
    return part / total


def contribution_to_requirement(
    organization_weight: int,
    valuation: int,
    requirement_satisfaction: float,
) -> float:
    """Share of a task's weighted satisfaction contributed by one member."""
    if not organization_weight or not valuation or requirement_satisfaction <= 0:
        return 0.0
    return organization_weight * valuation / requirement_satisfaction


def coverage(satisfactions: Iterable[float], valuations: Iterable[float]) -> float:
    """Retained satisfaction relative to the valuations behind it."""
    total_valuation = sum(value or 0 for value in valuations)
    if not total_valuation:
        return 0.0
    return sum(value or 0 for value in satisfactions) / total_valuation


def priority_label(task_productivity: float) -> Priority:
    return "high" if task_productivity > 1 else "medium"


def summarize_ratings(task: Task, ratings: Sequence[TaskRating]) -> RatingSummary:
    """Collapse member ratings into the task-level figures used for selection.

    The task's own effort wins; when it is 0 the rounded mean of the members'
    positive estimates stands in.
    """
    effort = task.effort
    if effort <= 0:
        estimates = [rating.effort for rating in ratings if rating.effort > 0]
        effort = round_half_up(sum(estimates) / len(estimates)) if estimates else 0
    return RatingSummary(
        client_satisfaction=sum(rating.client_satisfaction for rating in ratings),
        client_weight=sum(rating.client_weight for rating in ratings),
        effort=effort,
    )


def _client_breakdown(
    ratings: Sequence[TaskRating],
    weights: Mapping[UUID, int],
    *,
    task_satisfaction: int,
    requirement_satisfaction: int,
) -> list[ClientContribution]:
    clients: list[ClientContribution] = []
    for rating in ratings:
        organization_weight = weights.get(rating.user_id, 0)
        clients.append(
            ClientContribution(
                user_id=rating.user_id,
                organization_weight=organization_weight,
                valuation=rating.client_weight,
                satisfaction=rating.client_satisfaction,
                coverage=contribution(rating.client_weight, organization_weight),
                contribution_to_total=contribution(rating.client_satisfaction, task_satisfaction),
                contribution_to_requirement=contribution_to_requirement(
                    organization_weight,
                    rating.client_weight,
                    requirement_satisfaction,
                ),
            ),
        )
    return clients


def solution_metrics(items: Sequence[SolutionItem]) -> SolutionMetrics:
    """Aggregate productivity, coverage, effort and satisfaction over `items`."""
    total_effort = sum(item.rating.effort for item in items)
    total_sat = sum(item.rating.client_satisfaction for item in items)
    return SolutionMetrics(
        total_productivity=productivity(total_sat, total_effort),
        coverage=coverage(
            [item.rating.client_satisfaction for item in items],
            [item.rating.client_weight for item in items],
        ),
        total_effort=total_effort,
        total_satisfaction=total_sat,
    )


def select_solution(
    tasks: Sequence[Task],
    ratings: Iterable[TaskRating],
    weights: Mapping[UUID, int],
    *,
    effort_limit: int,
    effort_filter: int | None = None,
) -> Solution:
    """Greedily pick the highest-satisfaction tasks that fit the effort budget."""
    require_range(effort_limit, field="effort_limit")
    limit = effective_effort_limit(effort_limit, effort_filter)
    grouped = group_ratings_by_task(ratings)

    candidates = [task for task in tasks if not task.deselected]
    summaries = {task.id: summarize_ratings(task, grouped.get(task.id, [])) for task in candidates}
    candidate_total = sum(summary.client_satisfaction for summary in summaries.values())

    scored: list[SolutionItem] = []
    requirement_totals: dict[UUID, int] = {}
    for task in candidates:
        summary = summaries[task.id]
        requirement = total_satisfaction(grouped.get(task.id, []), weights)
        requirement_totals[task.id] = requirement
        task_productivity = productivity(summary.client_satisfaction, summary.effort)
        scored.append(
            SolutionItem(
                task=task,
                rating=summary,
                productivity=task_productivity,
                contribution_to_total=contribution(summary.client_satisfaction, candidate_total),
                contribution_to_requirement=contribution(summary.client_satisfaction, requirement),
                priority=priority_label(task_productivity),
            ),
        )

    ordered = sorted(
        scored,
        key=lambda item: (item.rating.client_satisfaction, item.productivity),
        reverse=True,
    )

    selected: list[SolutionItem] = []
    used_effort = 0
    for item in ordered:
        if used_effort + item.rating.effort > limit:
            continue
        used_effort += item.rating.effort
        item.clients = _client_breakdown(
            grouped.get(item.task.id, []),
            weights,
            task_satisfaction=item.rating.client_satisfaction,
            requirement_satisfaction=requirement_totals[item.task.id],
        )
        selected.append(item)

    return Solution(
        effort_limit=effort_limit,
        effort_filter=effort_filter,
        effective_effort_limit=limit,
        items=selected,
        metrics=solution_metrics(selected),
        candidate_count=len(candidates),
        deselected_count=len(tasks) - len(candidates),
    )


async def build_solution(
    session: AsyncSession,
    *,
    organization_id: UUID,
    effort_limit: int,
    effort_filter: int | None = None,
    version_id: UUID | None = None,
) -> Solution:
    """Load an organization's tasks, ratings and weights and select a solution.

    With `version_id`, only the tasks captured by that version are considered.
    """
    require_range(effort_limit, field="effort_limit")
    tasks = await list_organization_tasks(session, organization_id=organization_id)
    if version_id is not None:
        version = await get_version(
            session,
            organization_id=organization_id,
            version_id=version_id,
        )
        in_version = await version_task_ids(session, version=version)
        tasks = [task for task in tasks if task.id in in_version]

    task_ids = {task.id for task in tasks}
    ratings = [
        rating
        for rating in await list_organization_ratings(session, organization_id=organization_id)
        if rating.task_id in task_ids
    ]
    weights = await list_weights(session, organization_id=organization_id)

    solution = select_solution(
        tasks,
        ratings,
        weights,
        effort_limit=effort_limit,
        effort_filter=effort_filter,
    )
    logger.info(
        "solutions.built organization_id=%s candidates=%s selected=%s effort=%s/%s",
        organization_id,
        solution.candidate_count,
        len(solution.items),
        solution.metrics.total_effort,
        solution.effective_effort_limit,
    )
    return solution
