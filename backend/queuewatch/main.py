"""FastAPI application entrypoint and router wiring for the dashboard."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import APIRouter, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware

from queuewatch.api.agent_control import router as agent_control_router
from queuewatch.api.dashboard import router as dashboard_router
from queuewatch.api.entities import router as entities_router
from queuewatch.api.files import router as files_router
from queuewatch.api.reload import router as reload_router
from queuewatch.api.status import router as status_router
from queuewatch.core.config import settings
from queuewatch.core.error_handling import install_error_handling
from queuewatch.core.logging import configure_logging, get_logger
from queuewatch.db.session import check_store
from queuewatch.schemas.health import HealthStatusResponse, ReadinessStatusResponse

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

configure_logging()
logger = get_logger(__name__)
OPENAPI_TAGS = [
    {
        "name": "health",
        "description": "Service liveness and readiness checks.",
    },
    {
        "name": "status",
        "description": "Polled summary of queues, live work items, workers and announcements.",
    },
    {
        "name": "entities",
        "description": "Drill-down detail for queues, tasks, root work items, agents and announcements.",
    },
    {
        "name": "files",
        "description": "Markdown file viewer confined to the project root.",
    },
    {
        "name": "reload",
        "description": "Server-sent events that tell clients to reload after source changes.",
    },
    {
        "name": "agent-control",
        "description": "Start and stop worker processes through their lifecycle scripts.",
    },
]


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Report store availability before serving requests."""
    logger.info(
        "app.lifecycle.starting environment=%s project_root=%s reload_enabled=%s",
        settings.environment,
        settings.project_root,
        settings.reload_enabled,
    )
    await check_store()
    logger.info("app.lifecycle.started")
    try:
        yield
    finally:
        logger.info("app.lifecycle.stopped")


app = FastAPI(
    title="Queue Status Dashboard",
    version="0.1.0",
    lifespan=lifespan,
    openapi_tags=OPENAPI_TAGS,
)

origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_credentials=bool(origins),
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)
logger.info("app.cors.enabled origins_count=%s", len(origins))

install_error_handling(app)


@app.get(
    "/health",
    tags=["health"],
    response_model=HealthStatusResponse,
    summary="Health Check",
    description="Lightweight liveness endpoint.",
    responses={
        status.HTTP_200_OK: {
            "description": "Service is alive.",
            "content": {"application/json": {"example": {"ok": True}}},
        }
    },
)
def health() -> HealthStatusResponse:
    """Lightweight liveness endpoint."""
    return HealthStatusResponse(ok=True)


@app.get(
    "/healthz",
    tags=["health"],
    response_model=HealthStatusResponse,
    summary="Health Alias Check",
    description="Alias liveness endpoint for platform compatibility.",
)
def healthz() -> HealthStatusResponse:
    """Alias liveness endpoint for platform compatibility."""
    return HealthStatusResponse(ok=True)


@app.get(
    "/readyz",
    tags=["health"],
    response_model=ReadinessStatusResponse,
    summary="Readiness Check",
    description="Ready once the queue store file exists and accepts connections.",
)
async def readyz() -> ReadinessStatusResponse:
    """Readiness check that reports queue store availability."""
    available = await check_store()
    return ReadinessStatusResponse(ok=available, store_available=available)


api = APIRouter(prefix="/api")
api.include_router(status_router)
api.include_router(entities_router)
api.include_router(files_router)
api.include_router(reload_router)
api.include_router(agent_control_router)
app.include_router(api)
app.include_router(dashboard_router)

logger.debug("app.routes.registered count=%s", len(app.routes))
