"""Entity drill-down endpoints: one entity plus its immediate relations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, status

from queuewatch.db.session import get_session
from queuewatch.schemas.details import (
    AgentDetail,
    AnnouncementDetail,
    QueueDetail,
    RootWorkItemDetail,
    TaskDetail,
)
from queuewatch.schemas.errors import ErrorResponse
from queuewatch.services import resolvers

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

router = APIRouter(tags=["entities"])
SESSION_DEP = Depends(get_session)
NOT_FOUND_RESPONSES: dict[int | str, dict[str, object]] = {
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


@router.get("/queue/{name}", response_model=QueueDetail, responses=NOT_FOUND_RESPONSES)
async def get_queue(name: str, session: AsyncSession = SESSION_DEP) -> QueueDetail:
    """Queue and its placed tasks in serving order."""
    return await resolvers.resolve_queue_detail(session, name)


@router.get("/task/{task_id}", response_model=TaskDetail, responses=NOT_FOUND_RESPONSES)
async def get_task(task_id: int, session: AsyncSession = SESSION_DEP) -> TaskDetail:
    """Task with parent, root work item and children."""
    return await resolvers.resolve_task_detail(session, task_id)


@router.get(
    "/root-work-item/{item_id}",
    response_model=RootWorkItemDetail,
    responses=NOT_FOUND_RESPONSES,
)
async def get_root_work_item(
    item_id: int,
    session: AsyncSession = SESSION_DEP,
) -> RootWorkItemDetail:
    """Root work item and the tasks under it."""
    return await resolvers.resolve_root_work_item_detail(session, item_id)


@router.get(
    "/agent/{name}",
    response_model=AgentDetail,
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse}},
)
async def get_agent(name: str, session: AsyncSession = SESSION_DEP) -> AgentDetail:
    """Instances of a worker type and the tasks they hold; empty when none run."""
    return await resolvers.resolve_agent_detail(session, name)


@router.get(
    "/announcement/{announcement_id}",
    response_model=AnnouncementDetail,
    responses=NOT_FOUND_RESPONSES,
)
async def get_announcement(
    announcement_id: int,
    session: AsyncSession = SESSION_DEP,
) -> AnnouncementDetail:
    """Announcement and its related task."""
    return await resolvers.resolve_announcement_detail(session, announcement_id)
