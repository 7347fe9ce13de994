"""Worker start/stop endpoints backed by the process lifecycle scripts."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, status

from queuewatch.core.config import settings
from queuewatch.db.session import get_session
from queuewatch.schemas.agents import AgentControlRequest, AgentControlResult
from queuewatch.schemas.errors import ErrorResponse
from queuewatch.services.agent_processes import start_agent, stop_agent

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

router = APIRouter(prefix="/agent", tags=["agent-control"])
SESSION_DEP = Depends(get_session)
CONTROL_RESPONSES: dict[int | str, dict[str, object]] = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


@router.post("/start", response_model=AgentControlResult, responses=CONTROL_RESPONSES)
async def start_agent_instance(payload: AgentControlRequest) -> AgentControlResult:
    """Launch one more instance of a worker type."""
    scripts_dir = settings.agent_scripts_dir or settings.project_root / "scripts"
    return await start_agent(
        payload.agent_type,
        worker_types=settings.worker_types,
        scripts_dir=scripts_dir,
        cwd=settings.project_root,
    )


@router.post("/stop", response_model=AgentControlResult, responses=CONTROL_RESPONSES)
async def stop_agent_instances(
    payload: AgentControlRequest,
    session: AsyncSession = SESSION_DEP,
) -> AgentControlResult:
    """Signal every running instance of a worker type to stop."""
    return await stop_agent(session, payload.agent_type, worker_types=settings.worker_types)
