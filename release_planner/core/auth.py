"""Bearer-token authentication resolving the calling user."""

from __future__ import annotations

from dataclasses import dataclass
from hmac import compare_digest
from typing import TYPE_CHECKING, Literal

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from release_planner.core.config import settings
from release_planner.core.logging import get_logger
from release_planner.core.time import utcnow
from release_planner.db.session import get_session
from release_planner.models.users import User

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)
SECURITY_DEP = Depends(security)
SESSION_DEP = Depends(get_session)
LOCAL_AUTH_EMAIL = "admin@home.local"
LOCAL_AUTH_NAME = "Local User"


@dataclass
class AuthContext:
    """Authenticated user context resolved from inbound auth headers."""

    actor_type: Literal["user"]
    user: User | None = None


def _extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    value = authorization.strip()
    if not value:
        return None
    if not value.lower().startswith("bearer "):
        return None
    token = value.split(" ", maxsplit=1)[1].strip()
    return token or None


def _token_matches(token: str) -> bool:
    expected = settings.local_auth_token.strip()
    if not expected:
        return False
    return compare_digest(token.encode("utf-8"), expected.encode("utf-8"))


async def _get_or_create_local_user(session: AsyncSession) -> User:
    user = await User.objects.filter_by(email=LOCAL_AUTH_EMAIL).first(session)
    if user is not None:
        return user
    now = utcnow()
    user = User(
        email=LOCAL_AUTH_EMAIL,
        name=LOCAL_AUTH_NAME,
        created_at=now,
        updated_at=now,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    logger.info("auth.local_user.created user_id=%s", user.id)
    return user


async def _resolve_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
    session: AsyncSession,
) -> AuthContext | None:
    token = credentials.credentials if credentials else None
    if token is None:
        token = _extract_bearer_token(request.headers.get("Authorization"))
    if token is None or not _token_matches(token):
        return None
    user = await _get_or_create_local_user(session)
    return AuthContext(actor_type="user", user=user)


async def get_auth_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = SECURITY_DEP,
    session: AsyncSession = SESSION_DEP,
) -> AuthContext:
    """Resolve the authenticated user or raise 401."""
    ctx = await _resolve_context(request, credentials, session)
    if ctx is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return ctx

