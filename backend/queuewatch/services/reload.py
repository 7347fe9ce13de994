"""Source/asset change watching that drives the live-reload event stream.

This channel is a development aid. It is independent of status polling: a
watcher failure never affects the data endpoints.
"""

from __future__ import annotations

import asyncio
import json
from contextlib import aclosing
from pathlib import Path, PurePath
from typing import TYPE_CHECKING

from watchfiles import Change, awatch

from queuewatch.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Sequence

    Watcher = Callable[..., AsyncIterator[list[str]]]

logger = get_logger(__name__)

RELOAD_EXTENSIONS = frozenset({".py", ".js", ".html", ".css", ".md"})
IGNORED_DIR_NAMES = frozenset({".git", "node_modules", "__pycache__"})
IGNORED_SUFFIXES = (".db", ".log", ".pyc")
WATCH_DEBOUNCE_MS = 300
IDLE_POLL_SECONDS = 2


def is_relevant_change(path: str) -> bool:
    """Whether a changed path should trigger a client reload."""
    pure = PurePath(path)
    if IGNORED_DIR_NAMES.intersection(pure.parts):
        return False
    if pure.name.endswith(IGNORED_SUFFIXES):
        return False
    return not pure.suffix or pure.suffix in RELOAD_EXTENSIONS


def _watch_filter(change: Change, path: str) -> bool:
    del change
    return is_relevant_change(path)


async def watch_for_reload(
    paths: Sequence[Path],
    *,
    stop_event: asyncio.Event,
) -> AsyncIterator[list[str]]:
    """Yield sorted batches of relevant changed paths until `stop_event` is set."""
    existing = [path for path in paths if path.exists()]
    if not existing:
        logger.warning("reload.watch.no_paths", extra={"paths": [str(p) for p in paths]})
        await stop_event.wait()
        return
    async for changes in awatch(
        *existing,
        watch_filter=_watch_filter,
        stop_event=stop_event,
        debounce=WATCH_DEBOUNCE_MS,
    ):
        yield sorted({path for _, path in changes})


async def reload_event_stream(
    paths: Sequence[Path],
    *,
    enabled: bool,
    is_disconnected: Callable[[], Awaitable[bool]],
    watcher: Watcher = watch_for_reload,
) -> AsyncIterator[dict[str, str]]:
    """SSE events for one client: `connected` once, then `reload` per change batch.

    The watcher is owned by this generator; closing or cancelling the generator
    sets the stop event, which releases the underlying file watch.
    """
    stop_event = asyncio.Event()
    logger.info("reload.stream.opened", extra={"enabled": enabled})
    try:
        yield {"event": "connected", "data": json.dumps({"ok": True})}
        if not enabled:
            while not await is_disconnected():
                await asyncio.sleep(IDLE_POLL_SECONDS)
            return
        async with aclosing(watcher(paths, stop_event=stop_event)) as batches:
            async for changed in batches:
                if await is_disconnected():
                    break
                logger.info("reload.change_detected", extra={"changed": len(changed)})
                yield {"event": "reload", "data": json.dumps({"paths": changed})}
    finally:
        stop_event.set()
        logger.info("reload.stream.closed")
