"""Release planner application: lifespan, middleware, probes and API routers."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi_pagination import add_pagination

from release_planner.api.auth import router as auth_router
from release_planner.api.organizations import router as organizations_router
from release_planner.api.planning import router as planning_router
from release_planner.api.tasks import router as tasks_router
from release_planner.api.versions import router as versions_router
from release_planner.core.config import settings
from release_planner.core.error_handling import install_error_handling
from release_planner.core.logging import configure_logging, get_logger
from release_planner.db.session import init_db
from release_planner.schemas.health import HealthStatusResponse

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

configure_logging()
logger = get_logger(__name__)

OPENAPI_TAGS = [
    {"name": "auth", "description": "Local token bootstrap."},
    {"name": "health", "description": "Liveness and readiness probes."},
    {"name": "organizations", "description": "Organizations, members and member weights."},
    {"name": "tasks", "description": "Tasks and per-member effort and valuation ratings."},
    {"name": "planning", "description": "Top tasks and effort-budgeted release solutions."},
    {"name": "versions", "description": "Task-set snapshots, restore and delete."},
]


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Prepare the database before the first request."""
    logger.info(
        "app.lifecycle.starting environment=%s db_auto_migrate=%s",
        settings.environment,
        settings.db_auto_migrate,
    )
    await init_db()
    try:
        yield
    finally:
        logger.info("app.lifecycle.stopped")


app = FastAPI(
    title="Release Planner API",
    version="0.1.0",
    lifespan=lifespan,
    openapi_tags=OPENAPI_TAGS,
)

origins = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
if origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
logger.info("app.cors origins_count=%s", len(origins))

install_error_handling(app)


@app.get("/health", tags=["health"], response_model=HealthStatusResponse)
def health() -> HealthStatusResponse:
    """Liveness probe."""
    return HealthStatusResponse(ok=True)


@app.get("/healthz", tags=["health"], response_model=HealthStatusResponse)
def healthz() -> HealthStatusResponse:
    return HealthStatusResponse(ok=True)


@app.get("/readyz", tags=["health"], response_model=HealthStatusResponse)
def readyz() -> HealthStatusResponse:
    """Readiness probe."""
    return HealthStatusResponse(ok=True)


api_v1 = APIRouter(prefix="/api/v1")
for router in (
    auth_router,
    organizations_router,
    planning_router,
    tasks_router,
    versions_router,
):
    api_v1.include_router(router)
app.include_router(api_v1)

add_pagination(app)
