"""Chainable query helpers exposed as `Model.objects` on table models."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlmodel import SQLModel, col, select

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession
    from sqlmodel.sql.expression import SelectOfScalar

ModelT = TypeVar("ModelT", bound=SQLModel)


class QuerySet(Generic[ModelT]):
    """Immutable wrapper around a `select()` statement for one model."""

    def __init__(self, model: type[ModelT], statement: SelectOfScalar[ModelT]) -> None:
        self.model = model
        self.statement = statement

    def _clone(self, statement: SelectOfScalar[ModelT]) -> QuerySet[ModelT]:
        return QuerySet(self.model, statement)

    def filter(self, *criteria: Any) -> QuerySet[ModelT]:
        return self._clone(self.statement.where(*criteria))

    def filter_by(self, **values: Any) -> QuerySet[ModelT]:
        return self._clone(self.statement.filter_by(**values))

    def order_by(self, *ordering: Any) -> QuerySet[ModelT]:
        return self._clone(self.statement.order_by(*ordering))

    async def all(self, session: AsyncSession) -> list[ModelT]:
        return list(await session.exec(self.statement))

    async def first(self, session: AsyncSession) -> ModelT | None:
        result = await session.exec(self.statement)
        return result.first()


class ModelManager(Generic[ModelT]):
    """Entry point for building `QuerySet`s bound to a model class."""

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    def all(self) -> QuerySet[ModelT]:
        return QuerySet(self.model, select(self.model))

    def filter(self, *criteria: Any) -> QuerySet[ModelT]:
        return self.all().filter(*criteria)

    def filter_by(self, **values: Any) -> QuerySet[ModelT]:
        return self.all().filter_by(**values)

    def by_id(self, value: Any) -> QuerySet[ModelT]:
        return self.by_field("id", value)

    def by_field(self, field_name: str, value: Any) -> QuerySet[ModelT]:
        return self.filter(col(getattr(self.model, field_name)) == value)


class ManagerDescriptor:
    """Descriptor returning a `ModelManager` for the owning model class."""

    def __get__(self, instance: object, owner: type[ModelT]) -> ModelManager[ModelT]:
        return ModelManager(owner)
