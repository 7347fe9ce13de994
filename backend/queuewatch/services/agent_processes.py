"""Thin adapter over the worker-process lifecycle scripts.

Starting a worker launches its `agent-<type>.sh` script detached from the
server; stopping one signals every pid recorded for that worker type. Neither
operation writes to the queue store.
"""

from __future__ import annotations

import asyncio
import os
import signal
from typing import TYPE_CHECKING

from sqlmodel import col, select

from queuewatch.core.errors import DashboardError, ValidationFailure
from queuewatch.core.logging import get_logger
from queuewatch.models.agents import Agent
from queuewatch.schemas.agents import AgentControlResult
from queuewatch.services.status import agent_script_name
from queuewatch.services.store import StoreReader

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)


def _require_known_type(agent_type: str, worker_types: Sequence[str]) -> str:
    cleaned = agent_type.strip()
    if cleaned not in worker_types:
        raise ValidationFailure(f"Unknown agent type: {agent_type}")
    return cleaned


async def start_agent(
    agent_type: str,
    *,
    worker_types: Sequence[str],
    scripts_dir: Path,
    cwd: Path,
) -> AgentControlResult:
    """Launch one worker instance in its own session."""
    agent_type = _require_known_type(agent_type, worker_types)
    script = scripts_dir / agent_script_name(agent_type)
    if not script.is_file():
        raise ValidationFailure(f"No start script for agent type: {agent_type}")
    try:
        process = await asyncio.create_subprocess_exec(
            "bash",
            str(script),
            cwd=str(cwd),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as exc:
        logger.exception("agents.start.failed", extra={"agent_type": agent_type})
        raise DashboardError(f"Failed to start agent: {agent_type}") from exc
    logger.info("agents.start.launched", extra={"agent_type": agent_type, "pid": process.pid})
    return AgentControlResult(agent_type=agent_type, pid=process.pid)


async def stop_agent(
    session: AsyncSession,
    agent_type: str,
    *,
    worker_types: Sequence[str],
) -> AgentControlResult:
    """Send SIGTERM to every recorded instance of a worker type."""
    agent_type = _require_known_type(agent_type, worker_types)
    reader = StoreReader(session)
    reader.ensure_available()
    pids = await reader.all(
        select(col(Agent.pid)).where(col(Agent.name) == agent_type, col(Agent.pid).is_not(None)),
    )
    stopped = 0
    for pid in sorted(set(pids)):
        try:
            os.kill(int(pid), signal.SIGTERM)
        except ProcessLookupError:
            continue
        except PermissionError:
            logger.warning("agents.stop.permission_denied", extra={"pid": pid})
            continue
        stopped += 1
    logger.info("agents.stop.signalled", extra={"agent_type": agent_type, "stopped": stopped})
    return AgentControlResult(agent_type=agent_type, stopped=stopped)
