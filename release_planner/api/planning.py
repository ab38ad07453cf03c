"""Relevance ranking and release solution endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from release_planner.api.deps import require_org_member
from release_planner.core.config import settings
from release_planner.db.session import get_session
from release_planner.schemas.planning import (
    ClientContributionRead,
    RatingSummaryRead,
    SolutionItemRead,
    SolutionMetricsRead,
    SolutionRead,
    TaskRelevanceRead,
)
from release_planner.schemas.tasks import TaskRead
from release_planner.services.ranking import top_tasks
from release_planner.services.solutions import build_solution

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from release_planner.services.organizations import OrganizationContext
    from release_planner.services.solutions import Solution, SolutionItem

router = APIRouter(prefix="/organizations/{organization_id}", tags=["planning"])
SESSION_DEP = Depends(get_session)
ORG_MEMBER_DEP = Depends(require_org_member)
LIMIT_QUERY = Query(default=None, ge=0)
EFFORT_LIMIT_QUERY = Query(default=None, ge=0)
EFFORT_FILTER_QUERY = Query(default=None, ge=0)
VERSION_QUERY = Query(default=None)


def _item_to_read(item: SolutionItem) -> SolutionItemRead:
    return SolutionItemRead(
        task=TaskRead.model_validate(item.task, from_attributes=True),
        rating=RatingSummaryRead.model_validate(item.rating, from_attributes=True),
        productivity=item.productivity,
        contribution_to_total=item.contribution_to_total,
        contribution_to_requirement=item.contribution_to_requirement,
        priority=item.priority,
        clients=[
            ClientContributionRead.model_validate(client, from_attributes=True)
            for client in item.clients
        ],
    )


def _solution_to_read(solution: Solution) -> SolutionRead:
    return SolutionRead(
        effort_limit=solution.effort_limit,
        effort_filter=solution.effort_filter,
        effective_effort_limit=solution.effective_effort_limit,
        candidate_count=solution.candidate_count,
        deselected_count=solution.deselected_count,
        items=[_item_to_read(item) for item in solution.items],
        metrics=SolutionMetricsRead.model_validate(solution.metrics, from_attributes=True),
    )


@router.get("/tasks/top", response_model=list[TaskRelevanceRead])
async def get_top_tasks(
    limit: int | None = LIMIT_QUERY,
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_MEMBER_DEP,
) -> list[TaskRelevanceRead]:
    """Return the organization's most relevant tasks, highest score first."""
    ranked = await top_tasks(
        session,
        organization_id=ctx.organization.id,
        limit=settings.top_tasks_default_limit if limit is None else limit,
    )
    return [
        TaskRelevanceRead(
            task=TaskRead.model_validate(item.task, from_attributes=True),
            relevance_score=item.relevance_score,
        )
        for item in ranked
    ]


@router.get("/solution", response_model=SolutionRead)
async def get_solution(
    effort_limit: int | None = EFFORT_LIMIT_QUERY,
    effort_filter: int | None = EFFORT_FILTER_QUERY,
    version_id: UUID | None = VERSION_QUERY,
    session: AsyncSession = SESSION_DEP,
    ctx: OrganizationContext = ORG_MEMBER_DEP,
) -> SolutionRead:
    """Greedily select tasks that fit the effort budget."""
    solution = await build_solution(
        session,
        organization_id=ctx.organization.id,
        effort_limit=settings.default_effort_limit if effort_limit is None else effort_limit,
        effort_filter=effort_filter,
        version_id=version_id,
    )
    return _solution_to_read(solution)
