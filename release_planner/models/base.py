"""Shared SQLModel base class with query helpers."""

from __future__ import annotations

from typing import ClassVar

from sqlmodel import SQLModel

from release_planner.db.query_manager import ManagerDescriptor


class QueryModel(SQLModel, table=False):
    """Base for table models exposing `Model.objects` query builders."""

    objects: ClassVar[ManagerDescriptor] = ManagerDescriptor()
