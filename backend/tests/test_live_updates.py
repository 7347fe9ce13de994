# ruff: noqa: INP001
"""Status polling and the reload listener on the client side."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from queuewatch.schemas.status import StatusSummary
from queuewatch.ui.client import DashboardClient
from queuewatch.ui.live import ReloadListener, StatusPoller, iter_sse

STATUS_BODY = {
    "queues": [{"name": "execution", "queued": 1, "in_progress": 0, "done_last_hour": 0}],
    "rootWorkItems": [],
    "agents": [],
    "announcements": [],
    "timestamp": "2026-01-02T03:04:05Z",
}


async def _lines(*lines: str):
    for line in lines:
        yield line


@pytest.mark.asyncio
async def test_iter_sse_parses_named_events_and_skips_comments() -> None:
    events = [
        sse
        async for sse in iter_sse(
            _lines(
                ": ping",
                "",
                "event: connected",
                'data: {"ok": true}',
                "",
                "event: reload",
                "data: a",
                "data: b",
                "",
            ),
        )
    ]

    assert [(e.event, e.data) for e in events] == [
        ("connected", '{"ok": true}'),
        ("reload", "a\nb"),
    ]


@pytest.mark.asyncio
async def test_poller_tick_delivers_summary() -> None:
    received: list[StatusSummary] = []
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=STATUS_BODY))
    async with DashboardClient("http://dashboard.test", transport=transport) as client:
        poller = StatusPoller(client, received.append)
        summary = await poller.tick()

    assert summary is not None
    assert received == [summary]
    assert summary.queues[0].queued == 1
    assert poller.refresh_count == 1


@pytest.mark.asyncio
async def test_poller_tick_swallows_failed_fetch() -> None:
    received: list[StatusSummary] = []
    transport = httpx.MockTransport(
        lambda request: httpx.Response(500, json={"error": "Database not found"}),
    )
    async with DashboardClient("http://dashboard.test", transport=transport) as client:
        poller = StatusPoller(client, received.append)
        summary = await poller.tick()

    assert summary is None
    assert received == []
    assert poller.refresh_count == 0


@pytest.mark.asyncio
async def test_poller_keeps_polling_after_failure() -> None:
    calls = 0
    stop = asyncio.Event()

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        if calls == 1:
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(200, json=STATUS_BODY)

    async def on_status(summary: StatusSummary) -> None:
        stop.set()

    async with DashboardClient("http://dashboard.test", transport=httpx.MockTransport(handler)) as client:
        poller = StatusPoller(client, on_status, interval=0.01)
        await asyncio.wait_for(poller.run(stop), timeout=5)

    assert calls == 2
    assert poller.refresh_count == 1


@pytest.mark.asyncio
async def test_reload_listener_reconnects_after_drop() -> None:
    attempts = 0
    stop = asyncio.Event()
    reloads: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise httpx.ConnectError("refused", request=request)
        body = (
            'event: connected\ndata: {"ok": true}\n\n'
            'event: reload\ndata: {"paths": ["app.js"]}\n\n'
        )
        return httpx.Response(
            200,
            content=body.encode(),
            headers={"content-type": "text/event-stream"},
        )

    def on_reload() -> None:
        reloads.append(1)
        stop.set()

    async with httpx.AsyncClient(
        base_url="http://dashboard.test",
        transport=httpx.MockTransport(handler),
    ) as http:
        listener = ReloadListener(http, on_reload, reconnect_delay=0.01)
        await asyncio.wait_for(listener.run(stop), timeout=5)

    assert attempts == 2
    assert listener.connections == 1
    assert reloads == [1]


@pytest.mark.asyncio
async def test_reload_listener_survives_failing_callback() -> None:
    stop = asyncio.Event()
    reloads: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = (
            'event: connected\ndata: {"ok": true}\n\n'
            'event: reload\ndata: {"paths": ["app.js"]}\n\n'
            'event: reload\ndata: {"paths": ["style.css"]}\n\n'
        )
        return httpx.Response(
            200,
            content=body.encode(),
            headers={"content-type": "text/event-stream"},
        )

    async def on_reload() -> None:
        reloads.append(1)
        if len(reloads) == 1:
            raise RuntimeError("render failed")
        stop.set()

    async with httpx.AsyncClient(
        base_url="http://dashboard.test",
        transport=httpx.MockTransport(handler),
    ) as http:
        listener = ReloadListener(http, on_reload, reconnect_delay=0.01)
        await asyncio.wait_for(listener.run(stop), timeout=5)

    assert reloads == [1, 1]
    assert listener.connections == 1
