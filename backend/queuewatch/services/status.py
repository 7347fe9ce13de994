"""Status aggregation for the polled dashboard summary."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import and_, case, func, or_
from sqlmodel import col, select

from queuewatch.core.config import settings
from queuewatch.core.logging import get_logger
from queuewatch.models.agents import Agent
from queuewatch.models.announcements import Announcement
from queuewatch.models.tasks import RootWorkItem
from queuewatch.schemas.agents import AgentRollupRead
from queuewatch.schemas.announcements import AnnouncementRead
from queuewatch.schemas.status import StatusSummary
from queuewatch.schemas.tasks import RootWorkItemRead
from queuewatch.services.resolvers import resolve_queue_summary
from queuewatch.services.store import (
    StoreReader,
    normalized,
    recover,
    sqlite_cutoff,
    to_schemas,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)

FINISHED_WORK_ITEM_STATUSES = ("completed", "failed", "cancelled")
WORK_ITEM_STAGE_ORDER = (
    "executing",
    "checking",
    "building",
    "deploying",
    "testing",
    "planning",
    "researching",
    "pending",
    "completed",
    "failed",
)


def agent_script_name(worker_type: str) -> str:
    return f"agent-{worker_type}.sh"


async def resolve_live_work_items(
    session: AsyncSession,
    *,
    window: timedelta,
) -> list[RootWorkItemRead]:
    """Unfinished items, plus items that completed or failed within `window`."""
    reader = StoreReader(session)
    cutoff = sqlite_cutoff(window)
    stage_rank = case(
        {status: rank for rank, status in enumerate(WORK_ITEM_STAGE_ORDER)},
        value=col(RootWorkItem.status),
        else_=len(WORK_ITEM_STAGE_ORDER),
    )
    rows = await reader.all(
        select(RootWorkItem)
        .where(
            or_(
                col(RootWorkItem.status).not_in(FINISHED_WORK_ITEM_STATUSES),
                and_(
                    col(RootWorkItem.status) == "completed",
                    normalized(col(RootWorkItem.completed_at)) >= cutoff,
                ),
                and_(
                    col(RootWorkItem.status) == "failed",
                    normalized(col(RootWorkItem.failed_at)) >= cutoff,
                ),
            ),
        )
        .order_by(stage_rank, col(RootWorkItem.created_at).desc(), col(RootWorkItem.id).desc()),
    )
    return to_schemas(RootWorkItemRead, rows)


async def resolve_agent_rollups(
    session: AsyncSession,
    *,
    worker_types: Sequence[str],
    stale_after: timedelta,
) -> list[AgentRollupRead]:
    """Instance counts per worker type.

    Instances whose heartbeat is older than `stale_after` still count toward
    `total` but toward neither `working` nor `idle`, which is how a dead or
    hung worker shows up.
    """
    reader = StoreReader(session)
    fresh = normalized(col(Agent.last_heartbeat)) >= sqlite_cutoff(stale_after)
    rows = await reader.all(
        select(
            col(Agent.name),
            func.count(col(Agent.id)),
            func.coalesce(
                func.sum(case((and_(col(Agent.status) == "working", fresh), 1), else_=0)),
                0,
            ),
            func.coalesce(
                func.sum(case((and_(col(Agent.status) == "idle", fresh), 1), else_=0)),
                0,
            ),
        ).group_by(col(Agent.name)),
    )
    counts = {name: (int(total), int(working), int(idle)) for name, total, working, idle in rows}
    known = list(worker_types)
    known.extend(sorted(name for name in counts if name not in worker_types))
    rollups: list[AgentRollupRead] = []
    for name in known:
        total, working, idle = counts.get(name, (0, 0, 0))
        rollups.append(
            AgentRollupRead(
                name=name,
                script=agent_script_name(name),
                total=total,
                working=working,
                idle=idle,
            ),
        )
    return rollups


async def resolve_recent_announcements(
    session: AsyncSession,
    *,
    limit: int,
) -> list[AnnouncementRead]:
    reader = StoreReader(session)
    rows = await reader.all(
        select(Announcement)
        .order_by(col(Announcement.created_at).desc(), col(Announcement.id).desc())
        .limit(limit),
    )
    return to_schemas(AnnouncementRead, rows)


def _empty_rollups(worker_types: Sequence[str]) -> list[AgentRollupRead]:
    return [
        AgentRollupRead(name=name, script=agent_script_name(name)) for name in worker_types
    ]


async def resolve_status_summary(session: AsyncSession) -> StatusSummary:
    """Compose the dashboard summary; each section degrades on its own.

    Only a missing or unreachable store fails the whole call. A section whose
    query breaks (for example a missing table) falls back to its empty default.
    """
    reader = StoreReader(session)
    reader.ensure_available()
    await reader.ping()
    worker_types = settings.worker_types
    queues = await recover(resolve_queue_summary(session), section="status.queues", default=[])
    work_items = await recover(
        resolve_live_work_items(
            session,
            window=timedelta(minutes=settings.live_window_minutes),
        ),
        section="status.root_work_items",
        default=[],
    )
    agents = await recover(
        resolve_agent_rollups(
            session,
            worker_types=worker_types,
            stale_after=timedelta(minutes=settings.heartbeat_stale_minutes),
        ),
        section="status.agents",
        default=_empty_rollups(worker_types),
    )
    announcements = await recover(
        resolve_recent_announcements(session, limit=settings.announcement_limit),
        section="status.announcements",
        default=[],
    )
    logger.debug(
        "status.summary.resolved",
        extra={
            "queues": len(queues),
            "root_work_items": len(work_items),
            "announcements": len(announcements),
        },
    )
    return StatusSummary(
        queues=queues,
        root_work_items=work_items,
        agents=agents,
        announcements=announcements,
        timestamp=datetime.now(UTC),
    )
