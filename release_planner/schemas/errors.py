"""Structured error payload schemas used by API responses."""

from __future__ import annotations

from pydantic import Field
from sqlmodel import SQLModel


class ErrorResponse(SQLModel):
    """Standardized error payload returned by every error handler."""

    detail: str | dict[str, object] | list[object] = Field(
        description="Error payload; a message string, or `{message, field}` for field errors.",
        examples=[
            "Task not found",
            {"message": "client_weight must be <= 5", "field": "client_weight"},
        ],
    )
    request_id: str | None = Field(
        default=None,
        description="Request correlation identifier injected by middleware.",
    )
    code: str | None = Field(
        default=None,
        description="Machine-readable error code.",
        examples=["not_found", "validation_error", "forbidden", "conflict"],
    )
