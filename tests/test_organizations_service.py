# ruff: noqa

from __future__ import annotations

from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from release_planner.core.errors import ConflictError, ForbiddenError, NotFoundError
from release_planner.models.organization_members import OrganizationMember
from release_planner.models.organizations import Organization
from release_planner.models.task_ratings import TaskRating
from release_planner.models.tasks import Task
from release_planner.models.users import User
from release_planner.models.versions import Version, VersionTask
from release_planner.schemas.tasks import TaskCreate, TaskUpdate
from release_planner.services.organizations import (
    add_member,
    create_organization,
    delete_organization,
    list_user_organizations,
    remove_member,
)
from release_planner.services.ratings import get_rating, set_valuation
from release_planner.services.tasks import create_task, delete_task, update_task
from release_planner.services.versions import create_version
from release_planner.services.weights import get_weight, is_org_admin, list_weights


async def _make_engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)
    return engine


async def _user(session: AsyncSession, email: str = "owner@example.com") -> User:
    user = User(email=email)
    session.add(user)
    await session.commit()
    return user


@pytest.mark.asyncio
async def test_creator_joins_with_admin_weight() -> None:
    engine = await _make_engine()
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            owner = await _user(session)

            ctx = await create_organization(session, name="  Acme  ", creator=owner)

            assert ctx.organization.name == "Acme"
            assert ctx.member.weight == 5
            assert is_org_admin(ctx.member)
            assert await get_weight(
                session, organization_id=ctx.organization.id, user_id=owner.id
            ) == 5
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_add_member_creates_user_and_rejects_duplicates() -> None:
    engine = await _make_engine()
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            owner = await _user(session)
            ctx = await create_organization(session, name="Acme", creator=owner)
            org_id = ctx.organization.id

            member, user = await add_member(
                session, organization_id=org_id, email=" New@Example.com ", weight=2
            )

            assert user.email == "new@example.com"
            assert member.weight == 2
            assert not is_org_admin(member)
            assert await list_weights(session, organization_id=org_id) == {
                owner.id: 5,
                user.id: 2,
            }
            with pytest.raises(ConflictError):
                await add_member(session, organization_id=org_id, email="new@example.com")
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_weight_of_non_member_is_zero() -> None:
    engine = await _make_engine()
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            owner = await _user(session)
            ctx = await create_organization(session, name="Acme", creator=owner)

            assert await get_weight(
                session, organization_id=ctx.organization.id, user_id=uuid4()
            ) == 0
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_remove_member_drops_their_ratings() -> None:
    engine = await _make_engine()
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            owner = await _user(session)
            ctx = await create_organization(session, name="Acme", creator=owner)
            org_id = ctx.organization.id
            _, user = await add_member(session, organization_id=org_id, email="m@example.com")
            task = await create_task(
                session,
                organization_id=org_id,
                creator_id=owner.id,
                payload=TaskCreate(name="T", effort=2),
            )
            await set_valuation(
                session, task_id=task.id, organization_id=org_id, user_id=user.id, client_weight=1
            )

            await remove_member(session, organization_id=org_id, user_id=user.id)

            assert await get_rating(session, task_id=task.id, user_id=user.id) is None
            assert user.id not in await list_weights(session, organization_id=org_id)
            with pytest.raises(NotFoundError):
                await remove_member(session, organization_id=org_id, user_id=user.id)
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_only_creator_updates_or_deletes_task() -> None:
    engine = await _make_engine()
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            owner = await _user(session)
            ctx = await create_organization(session, name="Acme", creator=owner)
            org_id = ctx.organization.id
            _, other = await add_member(session, organization_id=org_id, email="o@example.com")
            task = await create_task(
                session,
                organization_id=org_id,
                creator_id=owner.id,
                payload=TaskCreate(name="T", effort=3),
            )

            with pytest.raises(ForbiddenError):
                await update_task(
                    session, task=task, user_id=other.id, payload=TaskUpdate(effort=1)
                )

            updated = await update_task(
                session,
                task=task,
                user_id=owner.id,
                payload=TaskUpdate(progress=50, deselected=True),
            )
            assert updated.progress == 50
            assert updated.deselected is True
            assert updated.effort == 3

            with pytest.raises(ForbiddenError):
                await delete_task(session, task=task, user_id=other.id)
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_delete_task_cascades_ratings_and_version_links() -> None:
    engine = await _make_engine()
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            owner = await _user(session)
            ctx = await create_organization(session, name="Acme", creator=owner)
            org_id = ctx.organization.id
            task = await create_task(
                session,
                organization_id=org_id,
                creator_id=owner.id,
                payload=TaskCreate(name="T"),
            )
            await set_valuation(
                session, task_id=task.id, organization_id=org_id, user_id=owner.id, client_weight=2
            )
            await create_version(session, organization_id=org_id, version_number="1")

            await delete_task(session, task=task, user_id=owner.id)

            assert await TaskRating.objects.filter_by(task_id=task.id).all(session) == []
            assert await VersionTask.objects.filter_by(task_id=task.id).all(session) == []
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_list_user_organizations_orders_by_name() -> None:
    engine = await _make_engine()
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            owner = await _user(session)
            other = await _user(session, "other@example.com")
            beta = await create_organization(session, name="beta", creator=owner)
            alpha = await create_organization(session, name="Alpha", creator=other)
            await create_organization(session, name="Gamma", creator=other)
            await add_member(
                session,
                organization_id=alpha.organization.id,
                email=owner.email,
                weight=2,
            )

            rows = await list_user_organizations(session, user_id=owner.id)

            assert [(org.name, member.weight) for org, member in rows] == [
                ("Alpha", 2),
                ("beta", 5),
            ]
            assert rows[1][0].id == beta.organization.id
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_delete_organization_requires_creator_and_removes_everything() -> None:
    engine = await _make_engine()
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            owner = await _user(session)
            ctx = await create_organization(session, name="Acme", creator=owner)
            org_id = ctx.organization.id
            _, rater = await add_member(
                session, organization_id=org_id, email="m@example.com", weight=5
            )
            task = await create_task(
                session,
                organization_id=org_id,
                creator_id=owner.id,
                payload=TaskCreate(name="T", effort=1),
            )
            await set_valuation(
                session, task_id=task.id, organization_id=org_id, user_id=rater.id, client_weight=1
            )
            await create_version(session, organization_id=org_id, version_number="1")

            with pytest.raises(ForbiddenError):
                await delete_organization(session, organization=ctx.organization, user_id=rater.id)

            await delete_organization(session, organization=ctx.organization, user_id=owner.id)

            assert await Organization.objects.by_id(org_id).first(session) is None
            assert await Task.objects.filter_by(organization_id=org_id).all(session) == []
            assert await TaskRating.objects.filter_by(task_id=task.id).all(session) == []
            assert await Version.objects.filter_by(organization_id=org_id).all(session) == []
            assert await VersionTask.objects.filter_by(task_id=task.id).all(session) == []
            assert await OrganizationMember.objects.filter_by(organization_id=org_id).all(
                session
            ) == []
            assert await list_user_organizations(session, user_id=owner.id) == []
    finally:
        await engine.dispose()
