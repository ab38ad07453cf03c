"""Model exports for SQLAlchemy/SQLModel metadata discovery."""

from release_planner.models.organization_members import OrganizationMember
from release_planner.models.organizations import Organization
from release_planner.models.task_ratings import TaskRating
from release_planner.models.tasks import Task
from release_planner.models.users import User
from release_planner.models.versions import Version, VersionTask

__all__ = [
    "Organization",
    "OrganizationMember",
    "Task",
    "TaskRating",
    "User",
    "Version",
    "VersionTask",
]
