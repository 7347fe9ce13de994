"""Entity query resolvers: one entity plus one hop of relations per call.

Each resolver issues independent read queries with no spanning transaction, so a
payload may mix rows read at slightly different moments. That is acceptable for
a display-only view; the next poll converges.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from sqlalchemy import and_, case, func
from sqlmodel import col, select

from queuewatch.core.errors import NotFoundError
from queuewatch.core.logging import get_logger
from queuewatch.models.agents import Agent
from queuewatch.models.announcements import Announcement
from queuewatch.models.queues import Queue, QueueTask
from queuewatch.models.tasks import RootWorkItem, Task
from queuewatch.schemas.agents import AgentRead
from queuewatch.schemas.announcements import AnnouncementRead
from queuewatch.schemas.details import (
    AgentDetail,
    AnnouncementDetail,
    QueueDetail,
    RootWorkItemDetail,
    TaskDetail,
)
from queuewatch.schemas.queues import QueueRead, QueueSummaryRead
from queuewatch.schemas.tasks import PlacedTaskRead, RootWorkItemRead, TaskRead, WorkItemTaskRead
from queuewatch.services.store import (
    StoreReader,
    normalized,
    recover,
    sqlite_cutoff,
    to_schema,
    to_schemas,
)

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)

QUEUE_DISPLAY_ORDER = (
    "requirements-research",
    "planning",
    "execution",
    "pre-commit-check",
    "commit-build",
    "deploy",
    "e2e-test",
    "announce",
)
TERMINAL_TASK_STATUSES = frozenset({"completed", "failed", "cancelled"})
DONE_WINDOW = timedelta(hours=1)


def queue_sort_key(name: str) -> tuple[int, str]:
    """Pipeline stages first in stage order, everything else alphabetically."""
    try:
        return (QUEUE_DISPLAY_ORDER.index(name), "")
    except ValueError:
        return (len(QUEUE_DISPLAY_ORDER), name)


def _count_where(condition: object) -> object:
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


async def resolve_queue_summary(session: AsyncSession) -> list[QueueSummaryRead]:
    """Every queue with queued/in-progress/done-last-hour placement counts."""
    reader = StoreReader(session)
    reader.ensure_available()
    done_cutoff = sqlite_cutoff(DONE_WINDOW)
    statement = (
        select(
            col(Queue.name).label("name"),
            col(Queue.description).label("description"),
            _count_where(col(QueueTask.status) == "queued").label("queued"),
            _count_where(col(QueueTask.status) == "in_progress").label("in_progress"),
            _count_where(
                and_(
                    col(QueueTask.status) == "completed",
                    normalized(col(QueueTask.updated_at)) >= done_cutoff,
                ),
            ).label("done_last_hour"),
        )
        .select_from(Queue)
        .outerjoin(QueueTask, col(QueueTask.queue_id) == col(Queue.id))
        .group_by(col(Queue.id), col(Queue.name), col(Queue.description))
    )
    rows = await reader.all(statement)
    queues = to_schemas(QueueSummaryRead, rows)
    return sorted(queues, key=lambda queue: queue_sort_key(queue.name))


async def resolve_queue_detail(session: AsyncSession, name: str) -> QueueDetail:
    """Queue plus its placed tasks: priority desc, creation asc, then placement order."""
    reader = StoreReader(session)
    reader.ensure_available()
    queue = await reader.first(select(Queue).where(col(Queue.name) == name))
    if queue is None:
        raise NotFoundError(f"Queue not found: {name}")

    async def _placed_tasks() -> list[PlacedTaskRead]:
        statement = (
            select(Task, QueueTask)
            .join(QueueTask, col(QueueTask.task_id) == col(Task.id))
            .where(col(QueueTask.queue_id) == queue.id)
            .order_by(
                col(Task.priority).desc(),
                col(Task.created_at).asc(),
                col(QueueTask.id).asc(),
            )
        )
        rows = await reader.all(statement)
        return [
            to_schema(
                PlacedTaskRead,
                task,
                queue_status=placement.status,
                placement_id=placement.id,
            )
            for task, placement in rows
        ]

    return QueueDetail(
        queue=to_schema(QueueRead, queue),
        tasks=await recover(_placed_tasks(), section="queue.tasks", default=[]),
    )


async def resolve_task_detail(session: AsyncSession, task_id: int) -> TaskDetail:
    """Task with parent, root work item and children ordered by creation time."""
    reader = StoreReader(session)
    reader.ensure_available()
    task = await reader.first(select(Task).where(col(Task.id) == task_id))
    if task is None:
        raise NotFoundError(f"Task not found: {task_id}")

    async def _parent() -> TaskRead | None:
        if task.parent_task_id is None:
            return None
        parent = await reader.first(select(Task).where(col(Task.id) == task.parent_task_id))
        return to_schema(TaskRead, parent) if parent is not None else None

    async def _root_work_item() -> RootWorkItemRead | None:
        if task.root_work_item_id is None:
            return None
        item = await reader.first(
            select(RootWorkItem).where(col(RootWorkItem.id) == task.root_work_item_id),
        )
        return to_schema(RootWorkItemRead, item) if item is not None else None

    async def _children() -> list[TaskRead]:
        rows = await reader.all(
            select(Task)
            .where(col(Task.parent_task_id) == task_id)
            .order_by(col(Task.created_at).asc(), col(Task.id).asc()),
        )
        return to_schemas(TaskRead, rows)

    return TaskDetail(
        task=to_schema(TaskRead, task),
        parent_task=await recover(_parent(), section="task.parent", default=None),
        root_work_item=await recover(_root_work_item(), section="task.root", default=None),
        child_tasks=await recover(_children(), section="task.children", default=[]),
    )


async def resolve_root_work_item_detail(
    session: AsyncSession,
    item_id: int,
) -> RootWorkItemDetail:
    """Root work item plus its tasks, each tagged with its current queue."""
    reader = StoreReader(session)
    reader.ensure_available()
    item = await reader.first(select(RootWorkItem).where(col(RootWorkItem.id) == item_id))
    if item is None:
        raise NotFoundError(f"Root work item not found: {item_id}")

    async def _tasks() -> list[WorkItemTaskRead]:
        tasks = await reader.all(
            select(Task)
            .where(col(Task.root_work_item_id) == item_id)
            .order_by(col(Task.created_at).asc(), col(Task.id).asc()),
        )
        if not tasks:
            return []
        placements = await reader.all(
            select(col(QueueTask.task_id), col(Queue.name))
            .join(Queue, col(Queue.id) == col(QueueTask.queue_id))
            .where(
                col(QueueTask.task_id).in_([task.id for task in tasks]),
                col(QueueTask.status) != "completed",
            )
            .order_by(col(QueueTask.id).asc()),
        )
        # Later placements win: a re-queued task sits in its newest queue.
        current_queue = {placed_task_id: queue_name for placed_task_id, queue_name in placements}
        return [
            to_schema(WorkItemTaskRead, task, queue_name=current_queue.get(task.id))
            for task in tasks
        ]

    return RootWorkItemDetail(
        root_work_item=to_schema(RootWorkItemRead, item),
        tasks=await recover(_tasks(), section="root_work_item.tasks", default=[]),
    )


async def resolve_agent_detail(session: AsyncSession, name: str) -> AgentDetail:
    """Every instance of a worker type and the non-terminal tasks it holds.

    A worker type with no running instances is a valid answer, not an error.
    """
    reader = StoreReader(session)
    reader.ensure_available()

    async def _instances() -> list[AgentRead]:
        rows = await reader.all(
            select(Agent)
            .where(col(Agent.name) == name)
            .order_by(col(Agent.last_heartbeat).desc().nulls_last(), col(Agent.id).desc()),
        )
        return to_schemas(AgentRead, rows)

    agents = await recover(_instances(), section="agent.instances", default=[])
    claimants = {name, *(agent.instance_id for agent in agents if agent.instance_id)}

    async def _active_tasks() -> list[TaskRead]:
        rows = await reader.all(
            select(Task)
            .where(
                col(Task.claimed_by).in_(sorted(claimants)),
                col(Task.status).not_in(sorted(TERMINAL_TASK_STATUSES)),
            )
            .order_by(col(Task.claimed_at).desc().nulls_last(), col(Task.id).asc()),
        )
        return to_schemas(TaskRead, rows)

    return AgentDetail(
        agents=agents,
        active_tasks=await recover(_active_tasks(), section="agent.active_tasks", default=[]),
    )


async def resolve_announcement_detail(
    session: AsyncSession,
    announcement_id: int,
) -> AnnouncementDetail:
    """Announcement plus the task it references, if any."""
    reader = StoreReader(session)
    reader.ensure_available()
    announcement = await reader.first(
        select(Announcement).where(col(Announcement.id) == announcement_id),
    )
    if announcement is None:
        raise NotFoundError(f"Announcement not found: {announcement_id}")

    async def _related_task() -> TaskRead | None:
        if announcement.task_id is None:
            return None
        task = await reader.first(select(Task).where(col(Task.id) == announcement.task_id))
        return to_schema(TaskRead, task) if task is not None else None

    return AnnouncementDetail(
        announcement=to_schema(AnnouncementRead, announcement),
        related_task=await recover(_related_task(), section="announcement.task", default=None),
    )
