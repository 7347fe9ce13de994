"""Server-rendered main view of the dashboard."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, status
from fastapi.responses import HTMLResponse

from queuewatch.core.config import settings
from queuewatch.core.errors import BackingStoreUnavailable
from queuewatch.db.session import get_session
from queuewatch.services.status import resolve_status_summary
from queuewatch.ui.live import RELOAD_STREAM_PATH, STATUS_POLL_SECONDS
from queuewatch.ui.render import render_dashboard_page, render_error, render_summary_sections

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

router = APIRouter(tags=["status"])
SESSION_DEP = Depends(get_session)
SECTION_IDS = ("queues", "work-items", "agents", "announcements")


def _page(sections: dict[str, str], generated_at: str) -> str:
    return render_dashboard_page(
        sections,
        generated_at=generated_at,
        refresh_seconds=STATUS_POLL_SECONDS,
        reload_stream=RELOAD_STREAM_PATH if settings.reload_enabled else None,
    )


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def dashboard_page(session: AsyncSession = SESSION_DEP) -> HTMLResponse:
    """Main view with every section rendered from one status summary.

    The page refreshes itself at the status poll cadence, and also listens on
    the reload stream when that is enabled.
    """
    try:
        summary = await resolve_status_summary(session)
    except BackingStoreUnavailable as exc:
        sections = {section: render_error(exc.message) for section in SECTION_IDS}
        return HTMLResponse(
            _page(sections, ""),
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    return HTMLResponse(_page(render_summary_sections(summary), summary.timestamp.isoformat()))
