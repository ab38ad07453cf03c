# ruff: noqa

from __future__ import annotations

from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from release_planner.core.errors import ConflictError, NotFoundError, ValidationError
from release_planner.models.organization_members import OrganizationMember
from release_planner.models.organizations import Organization
from release_planner.models.task_ratings import TaskRating
from release_planner.models.tasks import Task
from release_planner.models.users import User
from release_planner.services.ranking import top_tasks
from release_planner.services.satisfaction import task_satisfaction
from release_planner.services.solutions import build_solution
from release_planner.services.versions import (
    create_version,
    delete_version,
    list_versions,
    restore_version,
    version_task_ids,
)


async def _make_engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)
    return engine


async def _org_with_member(session: AsyncSession, weight: int = 1) -> tuple[Organization, User]:
    org = Organization(name="Acme")
    user = User(email=f"{uuid4().hex}@example.com")
    session.add(org)
    session.add(user)
    session.add(OrganizationMember(organization_id=org.id, user_id=user.id, weight=weight))
    await session.commit()
    return org, user


async def _rated_task(
    session: AsyncSession,
    org: Organization,
    user: User,
    *,
    name: str,
    effort: int,
    satisfaction: int,
    deselected: bool = False,
) -> Task:
    task = Task(organization_id=org.id, name=name, effort=effort, deselected=deselected)
    session.add(task)
    session.add(
        TaskRating(
            task_id=task.id,
            user_id=user.id,
            effort=effort,
            client_weight=1,
            client_satisfaction=satisfaction,
        ),
    )
    await session.commit()
    return task


@pytest.mark.asyncio
async def test_top_tasks_on_empty_organization_is_empty() -> None:
    engine = await _make_engine()
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            org, _ = await _org_with_member(session)

            assert await top_tasks(session, organization_id=org.id) == []
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_top_tasks_returns_most_relevant_first() -> None:
    engine = await _make_engine()
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            org, user = await _org_with_member(session, weight=2)
            await _rated_task(session, org, user, name="cheap", effort=1, satisfaction=3)
            await _rated_task(session, org, user, name="costly", effort=5, satisfaction=5)
            await _rated_task(session, org, user, name="mid", effort=2, satisfaction=4)
            await _rated_task(session, org, user, name="tail", effort=5, satisfaction=1)

            ranked = await top_tasks(session, organization_id=org.id, limit=3)

            assert [item.task.name for item in ranked] == ["cheap", "mid", "costly"]
            assert ranked[0].relevance_score == pytest.approx(6.0)
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_top_tasks_rejects_negative_limit() -> None:
    engine = await _make_engine()
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            org, _ = await _org_with_member(session)
            with pytest.raises(ValidationError):
                await top_tasks(session, organization_id=org.id, limit=-1)
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_build_solution_from_stored_ratings() -> None:
    engine = await _make_engine()
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            org, user = await _org_with_member(session)
            await _rated_task(session, org, user, name="T1", effort=6, satisfaction=9)
            await _rated_task(session, org, user, name="T2", effort=5, satisfaction=8)
            await _rated_task(session, org, user, name="T3", effort=3, satisfaction=5)
            await _rated_task(
                session, org, user, name="off", effort=1, satisfaction=9, deselected=True
            )

            solution = await build_solution(session, organization_id=org.id, effort_limit=10)

            assert [item.task.name for item in solution.items] == ["T1", "T3"]
            assert solution.metrics.total_effort == 9
            assert solution.deselected_count == 1
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_build_solution_restricted_to_version_snapshot() -> None:
    engine = await _make_engine()
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            org, user = await _org_with_member(session)
            await _rated_task(session, org, user, name="old", effort=2, satisfaction=2)
            version, captured = await create_version(
                session, organization_id=org.id, version_number="1.0"
            )
            await _rated_task(session, org, user, name="new", effort=2, satisfaction=5)

            solution = await build_solution(
                session,
                organization_id=org.id,
                effort_limit=10,
                version_id=version.id,
            )

            assert captured == 1
            assert [item.task.name for item in solution.items] == ["old"]
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_versions_are_unique_per_organization() -> None:
    engine = await _make_engine()
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            org, user = await _org_with_member(session)
            other, _ = await _org_with_member(session)
            task = await _rated_task(session, org, user, name="T", effort=1, satisfaction=1)

            version, _ = await create_version(session, organization_id=org.id, version_number="2.0")
            with pytest.raises(ConflictError):
                await create_version(session, organization_id=org.id, version_number=" 2.0 ")
            with pytest.raises(ValidationError):
                await create_version(session, organization_id=org.id, version_number="  ")
            await create_version(session, organization_id=other.id, version_number="2.0")

            assert await version_task_ids(session, version=version) == {task.id}
            assert [v.id for v in await list_versions(session, organization_id=org.id)] == [
                version.id
            ]
            with pytest.raises(NotFoundError):
                await build_solution(
                    session,
                    organization_id=other.id,
                    effort_limit=5,
                    version_id=version.id,
                )
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_task_satisfaction_lists_every_member() -> None:
    engine = await _make_engine()
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            org, rater = await _org_with_member(session, weight=5)
            silent = User(email="silent@example.com")
            session.add(silent)
            session.add(OrganizationMember(organization_id=org.id, user_id=silent.id, weight=3))
            await session.commit()
            task = await _rated_task(session, org, rater, name="T", effort=2, satisfaction=5)

            result = await task_satisfaction(session, organization_id=org.id, task=task)

            assert result.total_satisfaction == 5
            rows = {row.user_id: row for row in result.ratings}
            assert rows[rater.id].rated is True
            assert rows[rater.id].client_satisfaction == 5
            assert rows[silent.id].rated is False
            assert rows[silent.id].organization_weight == 3
            assert rows[silent.id].client_satisfaction == 0
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_restore_version_resets_tasks_and_drops_larger_versions() -> None:
    engine = await _make_engine()
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            org, user = await _org_with_member(session)
            kept = await _rated_task(session, org, user, name="kept", effort=1, satisfaction=1)
            first, _ = await create_version(session, organization_id=org.id, version_number="1")
            added = await _rated_task(session, org, user, name="added", effort=2, satisfaction=2)
            second, _ = await create_version(session, organization_id=org.id, version_number="2")
            await _rated_task(session, org, user, name="draft", effort=3, satisfaction=3)

            result = await restore_version(session, organization_id=org.id, version_id=first.id)

            assert result.version.id == first.id
            assert result.task_count == 1
            assert result.removed_task_count == 2
            assert result.removed_version_count == 1
            remaining = await Task.objects.filter_by(organization_id=org.id).all(session)
            assert [task.id for task in remaining] == [kept.id]
            assert await TaskRating.objects.filter_by(task_id=added.id).all(session) == []
            assert [v.id for v in await list_versions(session, organization_id=org.id)] == [
                first.id
            ]
            assert await version_task_ids(session, version=first) == {kept.id}
            with pytest.raises(NotFoundError):
                await restore_version(session, organization_id=org.id, version_id=second.id)
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_delete_version_keeps_tasks() -> None:
    engine = await _make_engine()
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            org, user = await _org_with_member(session)
            other, _ = await _org_with_member(session)
            task = await _rated_task(session, org, user, name="T", effort=1, satisfaction=1)
            version, _ = await create_version(session, organization_id=org.id, version_number="1")

            with pytest.raises(NotFoundError):
                await delete_version(session, organization_id=other.id, version_id=version.id)

            await delete_version(session, organization_id=org.id, version_id=version.id)

            assert await list_versions(session, organization_id=org.id) == []
            remaining = await Task.objects.filter_by(organization_id=org.id).all(session)
            assert [t.id for t in remaining] == [task.id]
            with pytest.raises(NotFoundError):
                await delete_version(session, organization_id=org.id, version_id=version.id)
    finally:
        await engine.dispose()
