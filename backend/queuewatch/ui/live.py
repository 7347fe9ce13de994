"""Client live updates: the 5s status poll and the dev-time reload listener.

The two paths fail independently. A failed poll is logged and skipped, and the
next tick is the retry. A dropped reload stream is reconnected after a fixed
delay, forever.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx

from queuewatch.core.logging import get_logger
from queuewatch.ui.client import DashboardClientError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from queuewatch.schemas.status import StatusSummary
    from queuewatch.ui.client import DashboardClient

logger = get_logger(__name__)

STATUS_POLL_SECONDS = 5.0
RELOAD_RECONNECT_SECONDS = 2.0
RELOAD_STREAM_PATH = "/api/reload"


class StatusPoller:
    """Refetches `/api/status` on a fixed interval and hands each payload on."""

    def __init__(
        self,
        client: DashboardClient,
        on_status: Callable[[StatusSummary], Awaitable[object] | object],
        *,
        interval: float = STATUS_POLL_SECONDS,
    ) -> None:
        self.client = client
        self.on_status = on_status
        self.interval = interval
        self.refresh_count = 0

    async def tick(self) -> StatusSummary | None:
        """One poll; failures are logged and return None."""
        try:
            summary = await self.client.get_status()
        except (DashboardClientError, httpx.HTTPError) as exc:
            logger.warning("poller.status.failed", extra={"error": str(exc)})
            return None
        outcome = self.on_status(summary)
        if asyncio.iscoroutine(outcome):
            await outcome
        self.refresh_count += 1
        return summary

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        stop_event = stop_event or asyncio.Event()
        while not stop_event.is_set():
            await self.tick()
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval)
            except TimeoutError:
                continue


@dataclass
class ServerSentEvent:
    event: str = "message"
    data: str = ""
    id: str | None = None


@dataclass
class _EventBuffer:
    event: str = "message"
    data: list[str] = field(default_factory=list)
    id: str | None = None

    def flush(self) -> ServerSentEvent | None:
        if not self.data and self.event == "message":
            return None
        sse = ServerSentEvent(event=self.event, data="\n".join(self.data), id=self.id)
        self.event, self.data, self.id = "message", [], None
        return sse


async def iter_sse(lines: AsyncIterator[str]) -> AsyncIterator[ServerSentEvent]:
    """Parse a `text/event-stream` line iterator into events."""
    buffer = _EventBuffer()
    async for raw in lines:
        line = raw.rstrip("\r")
        if not line:
            sse = buffer.flush()
            if sse is not None:
                yield sse
            continue
        if line.startswith(":"):
            continue
        name, _, value = line.partition(":")
        value = value.removeprefix(" ")
        if name == "event":
            buffer.event = value
        elif name == "data":
            buffer.data.append(value)
        elif name == "id":
            buffer.id = value
    sse = buffer.flush()
    if sse is not None:
        yield sse


class ReloadListener:
    """Listens on `/api/reload` and calls `on_reload` for every `reload` event."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        on_reload: Callable[[], Awaitable[object] | object],
        *,
        reconnect_delay: float = RELOAD_RECONNECT_SECONDS,
        path: str = RELOAD_STREAM_PATH,
    ) -> None:
        self.http = http
        self.on_reload = on_reload
        self.reconnect_delay = reconnect_delay
        self.path = path
        self.connections = 0

    async def _listen_once(self) -> None:
        async with self.http.stream("GET", self.path, timeout=None) as response:
            response.raise_for_status()
            async for sse in iter_sse(response.aiter_lines()):
                if sse.event == "connected":
                    self.connections += 1
                    logger.info("reload.listener.connected")
                elif sse.event == "reload":
                    logger.info("reload.listener.reload")
                    await self._notify()

    async def _notify(self) -> None:
        # A failing callback must not end the subscription.
        try:
            outcome = self.on_reload()
            if asyncio.iscoroutine(outcome):
                await outcome
        except Exception:
            logger.exception("reload.listener.callback_failed")

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        stop_event = stop_event or asyncio.Event()
        while not stop_event.is_set():
            try:
                await self._listen_once()
                logger.info("reload.listener.closed")
            except httpx.HTTPError as exc:
                logger.warning("reload.listener.disconnected", extra={"error": str(exc)})
            if stop_event.is_set():
                break
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.reconnect_delay)
            except TimeoutError:
                continue
