"""Initial planning schema: users, organizations, tasks, ratings, versions.

Revision ID: 1a2b3c4d5e6f
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "1a2b3c4d5e6f"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    existing_tables = inspector.get_table_names()

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("email", sa.String(), nullable=False),
            sa.Column("name", sa.String(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_users_email", "users", ["email"], unique=True)

    if "organizations" not in existing_tables:
        op.create_table(
            "organizations",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("created_by_user_id", sa.Uuid(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["created_by_user_id"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(
            "ix_organizations_created_by_user_id",
            "organizations",
            ["created_by_user_id"],
        )

    if "organization_members" not in existing_tables:
        op.create_table(
            "organization_members",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("organization_id", sa.Uuid(), nullable=False),
            sa.Column("user_id", sa.Uuid(), nullable=False),
            sa.Column("weight", sa.Integer(), server_default="0", nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"]),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint(
                "organization_id",
                "user_id",
                name="uq_organization_members_org_user",
            ),
        )
        op.create_index(
            "ix_organization_members_organization_id",
            "organization_members",
            ["organization_id"],
        )
        op.create_index("ix_organization_members_user_id", "organization_members", ["user_id"])

    if "tasks" not in existing_tables:
        op.create_table(
            "tasks",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("organization_id", sa.Uuid(), nullable=False),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("description", sa.String(), nullable=True),
            sa.Column("effort", sa.Integer(), server_default="0", nullable=False),
            sa.Column("progress", sa.Integer(), server_default="0", nullable=False),
            sa.Column("deselected", sa.Boolean(), server_default=sa.false(), nullable=False),
            sa.Column("created_by_user_id", sa.Uuid(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"]),
            sa.ForeignKeyConstraint(["created_by_user_id"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_tasks_organization_id", "tasks", ["organization_id"])
        op.create_index("ix_tasks_deselected", "tasks", ["deselected"])
        op.create_index("ix_tasks_created_by_user_id", "tasks", ["created_by_user_id"])

    if "task_ratings" not in existing_tables:
        op.create_table(
            "task_ratings",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("task_id", sa.Uuid(), nullable=False),
            sa.Column("user_id", sa.Uuid(), nullable=False),
            sa.Column("effort", sa.Integer(), server_default="0", nullable=False),
            sa.Column("client_weight", sa.Integer(), server_default="0", nullable=False),
            sa.Column("client_satisfaction", sa.Integer(), server_default="0", nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["task_id"], ["tasks.id"]),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("task_id", "user_id", name="uq_task_ratings_task_user"),
        )
        op.create_index("ix_task_ratings_task_id", "task_ratings", ["task_id"])
        op.create_index("ix_task_ratings_user_id", "task_ratings", ["user_id"])

    if "versions" not in existing_tables:
        op.create_table(
            "versions",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("organization_id", sa.Uuid(), nullable=False),
            sa.Column("version_number", sa.String(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint(
                "organization_id",
                "version_number",
                name="uq_versions_org_number",
            ),
        )
        op.create_index("ix_versions_organization_id", "versions", ["organization_id"])

    if "version_tasks" not in existing_tables:
        op.create_table(
            "version_tasks",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("version_id", sa.Uuid(), nullable=False),
            sa.Column("task_id", sa.Uuid(), nullable=False),
            sa.ForeignKeyConstraint(["version_id"], ["versions.id"]),
            sa.ForeignKeyConstraint(["task_id"], ["tasks.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("version_id", "task_id", name="uq_version_tasks_version_task"),
        )
        op.create_index("ix_version_tasks_version_id", "version_tasks", ["version_id"])
        op.create_index("ix_version_tasks_task_id", "version_tasks", ["task_id"])


def downgrade() -> None:
    op.drop_table("version_tasks")
    op.drop_table("versions")
    op.drop_table("task_ratings")
    op.drop_table("tasks")
    op.drop_table("organization_members")
    op.drop_table("organizations")
    op.drop_table("users")
