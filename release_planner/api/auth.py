"""Authentication bootstrap endpoints for the release planner API."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from release_planner.core.auth import AuthContext, get_auth_context
from release_planner.schemas.errors import ErrorResponse
from release_planner.schemas.users import UserRead

router = APIRouter(prefix="/auth", tags=["auth"])
AUTH_CONTEXT_DEP = Depends(get_auth_context)


@router.post(
    "/bootstrap",
    response_model=UserRead,
    summary="Bootstrap Authenticated User Context",
    description=(
        "Resolve caller identity from the bearer token and return the user profile. "
        "This endpoint does not accept a request body."
    ),
    responses={
        status.HTTP_200_OK: {
            "description": "Authenticated user profile resolved from the token.",
            "content": {
                "application/json": {
                    "example": {
                        "id": "11111111-1111-1111-1111-111111111111",
                        "email": "admin@home.local",
                        "name": "Local User",
                    }
                }
            },
        },
        status.HTTP_401_UNAUTHORIZED: {
            "model": ErrorResponse,
            "description": "Caller is not authenticated.",
            "content": {
                "application/json": {
                    "example": {"detail": "Unauthorized", "request_id": "3f2a9c"},
                }
            },
        },
    },
)
async def bootstrap_user(auth: AuthContext = AUTH_CONTEXT_DEP) -> UserRead:
    """Return the authenticated user profile."""
    if auth.user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return UserRead.model_validate(auth.user, from_attributes=True)
