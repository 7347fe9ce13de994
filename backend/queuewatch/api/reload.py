"""Live-reload server-sent event stream."""

from __future__ import annotations

from fastapi import APIRouter, Request
from sse_starlette.sse import EventSourceResponse

from queuewatch.core.config import settings
from queuewatch.services.reload import reload_event_stream

router = APIRouter(tags=["reload"])


@router.get("/reload")
async def stream_reload(request: Request) -> EventSourceResponse:
    """Emit `connected`, then `reload` whenever watched sources change."""
    events = reload_event_stream(
        settings.watch_dirs,
        enabled=bool(settings.reload_enabled),
        is_disconnected=request.is_disconnected,
    )
    return EventSourceResponse(events, ping=15)
