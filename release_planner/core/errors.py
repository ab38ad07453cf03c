"""Domain error taxonomy raised by planning services.

Services raise these instead of `HTTPException` so the scoring and selection
code stays usable outside a request. `install_error_handling` maps each kind
to its HTTP status and a machine-readable `code`.
"""

from __future__ import annotations

from fastapi import status


class PlannerError(Exception):
    """Base class for errors surfaced to API callers."""

    code = "planner_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationError(PlannerError):
    """Out-of-range or missing numeric input, rejected before any write."""

    code = "validation_error"
    status_code = status.HTTP_422_UNPROCESSABLE_CONTENT


class NotFoundError(PlannerError):
    """Referenced task, member, version or rating does not exist."""

    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(PlannerError):
    """Caller lacks the weight or ownership the operation requires."""

    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(PlannerError):
    """Write conflicts with an existing unique record."""

    code = "conflict"
    status_code = status.HTTP_409_CONFLICT


def require_range(
    value: int,
    *,
    field: str,
    minimum: int = 0,
    maximum: int | None = None,
) -> int:
    """Return `value` or raise `ValidationError` when it falls outside the bounds."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer", field=field)
    if value < minimum:
        raise ValidationError(f"{field} must be >= {minimum}", field=field)
    if maximum is not None and value > maximum:
        raise ValidationError(f"{field} must be <= {maximum}", field=field)
    return value
