# ruff: noqa: INP001
"""Reload event stream lifecycle and change filtering."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from queuewatch.services import reload
from queuewatch.services.reload import is_relevant_change, reload_event_stream


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("/srv/app/static/app.js", True),
        ("/srv/app/queuewatch/main.py", True),
        ("/srv/app/templates/index.html", True),
        ("/srv/app/Makefile", True),
        ("/srv/app/.git/HEAD", False),
        ("/srv/app/node_modules/pkg/index.js", False),
        ("/srv/app/queuewatch/__pycache__/main.cpython-312.pyc", False),
        ("/srv/app/.agent-queue.db", False),
        ("/srv/app/server.log", False),
        ("/srv/app/image.png", False),
    ],
)
def test_is_relevant_change(path: str, expected: bool) -> None:
    assert is_relevant_change(path) is expected


class FakeWatcher:
    """Yields preset batches and records the stop event it was handed."""

    def __init__(self, batches: list[list[str]]) -> None:
        self.batches = batches
        self.stop_event: asyncio.Event | None = None
        self.finished = False

    async def __call__(self, paths, *, stop_event: asyncio.Event):
        self.stop_event = stop_event
        try:
            for batch in self.batches:
                yield batch
            await stop_event.wait()
        finally:
            self.finished = True


async def _connected() -> bool:
    return False


@pytest.mark.asyncio
async def test_stream_emits_connected_then_reload_batches() -> None:
    watcher = FakeWatcher([["/srv/app/app.js"], ["/srv/app/a.css", "/srv/app/b.css"]])
    stream = reload_event_stream(
        [Path("/srv/app")],
        enabled=True,
        is_disconnected=_connected,
        watcher=watcher,
    )

    first = await anext(stream)
    second = await anext(stream)
    third = await anext(stream)
    await stream.aclose()

    assert first["event"] == "connected"
    assert second == {"event": "reload", "data": json.dumps({"paths": ["/srv/app/app.js"]})}
    assert json.loads(third["data"])["paths"] == ["/srv/app/a.css", "/srv/app/b.css"]
    assert watcher.stop_event is not None and watcher.stop_event.is_set()
    assert watcher.finished


@pytest.mark.asyncio
async def test_stream_releases_watcher_when_client_disconnects() -> None:
    watcher = FakeWatcher([["/srv/app/app.js"]])

    async def _disconnected() -> bool:
        return True

    stream = reload_event_stream(
        [Path("/srv/app")],
        enabled=True,
        is_disconnected=_disconnected,
        watcher=watcher,
    )
    events = [event async for event in stream]

    assert [event["event"] for event in events] == ["connected"]
    assert watcher.stop_event is not None and watcher.stop_event.is_set()
    assert watcher.finished


@pytest.mark.asyncio
async def test_disabled_stream_only_announces_connection(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(reload, "IDLE_POLL_SECONDS", 0)
    checks = 0

    async def _disconnect_on_second_check() -> bool:
        nonlocal checks
        checks += 1
        return checks > 1

    watcher = FakeWatcher([["/srv/app/app.js"]])
    stream = reload_event_stream(
        [Path("/srv/app")],
        enabled=False,
        is_disconnected=_disconnect_on_second_check,
        watcher=watcher,
    )
    events = [event async for event in stream]

    assert [event["event"] for event in events] == ["connected"]
    assert watcher.stop_event is None


@pytest.mark.asyncio
async def test_watch_for_reload_waits_on_stop_when_nothing_to_watch(tmp_path: Path) -> None:
    stop = asyncio.Event()
    batches = reload.watch_for_reload([tmp_path / "missing"], stop_event=stop)

    pending = asyncio.ensure_future(anext(batches, None))
    await asyncio.sleep(0)
    assert not pending.done()
    stop.set()

    assert await asyncio.wait_for(pending, timeout=5) is None
