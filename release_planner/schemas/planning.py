"""Schemas for relevance ranking and release solution payloads."""

from __future__ import annotations

from typing import Literal
from uuid import UUID

from sqlmodel import Field, SQLModel

from release_planner.schemas.tasks import TaskRead

RUNTIME_ANNOTATION_TYPES = (UUID,)


class TaskRelevanceRead(SQLModel):
    """A ranked task with its relevance score."""

    task: TaskRead
    relevance_score: float


class RatingSummaryRead(SQLModel):
    client_satisfaction: int
    client_weight: int
    effort: int


class ClientContributionRead(SQLModel):
    """One rating member's share of a selected task."""

    user_id: UUID
    organization_weight: int
    valuation: int
    satisfaction: int
    coverage: float
    contribution_to_total: float
    contribution_to_requirement: float


class SolutionItemRead(SQLModel):
    """A selected task with its selection metrics."""

    task: TaskRead
    rating: RatingSummaryRead
    productivity: float
    contribution_to_total: float
    contribution_to_requirement: float
    priority: Literal["high", "medium"]
    clients: list[ClientContributionRead] = Field(default_factory=list)


class SolutionMetricsRead(SQLModel):
    total_productivity: float
    coverage: float
    total_effort: int
    total_satisfaction: int


class SolutionRead(SQLModel):
    """Greedy release solution for an effort budget."""

    effort_limit: int
    effort_filter: int | None = None
    effective_effort_limit: int
    candidate_count: int
    deselected_count: int
    items: list[SolutionItemRead] = Field(default_factory=list)
    metrics: SolutionMetricsRead
