"""Polled dashboard summary endpoint."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, status

from queuewatch.db.session import get_session
from queuewatch.schemas.errors import ErrorResponse
from queuewatch.schemas.status import StatusSummary
from queuewatch.services.status import resolve_status_summary

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

router = APIRouter(tags=["status"])
SESSION_DEP = Depends(get_session)


@router.get(
    "/status",
    response_model=StatusSummary,
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse}},
)
async def get_status(session: AsyncSession = SESSION_DEP) -> StatusSummary:
    """Queue rollups, live work items, worker rollups and recent announcements."""
    return await resolve_status_summary(session)
