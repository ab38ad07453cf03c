"""Public schema exports shared across API route modules."""

from release_planner.schemas.organizations import (
    MemberWeightUpdateResponse,
    OrganizationCreate,
    OrganizationMemberCreate,
    OrganizationMemberRead,
    OrganizationMemberWeightUpdate,
    OrganizationRead,
)
from release_planner.schemas.planning import SolutionRead, TaskRelevanceRead
from release_planner.schemas.ratings import (
    RatingUpdate,
    TaskRatingRead,
    TaskSatisfactionRead,
)
from release_planner.schemas.tasks import TaskCreate, TaskRead, TaskUpdate
from release_planner.schemas.versions import VersionCreate, VersionRead

__all__ = [
    "MemberWeightUpdateResponse",
    "OrganizationCreate",
    "OrganizationMemberCreate",
    "OrganizationMemberRead",
    "OrganizationMemberWeightUpdate",
    "OrganizationRead",
    "RatingUpdate",
    "SolutionRead",
    "TaskCreate",
    "TaskRatingRead",
    "TaskRead",
    "TaskRelevanceRead",
    "TaskSatisfactionRead",
    "TaskUpdate",
    "VersionCreate",
    "VersionRead",
]
