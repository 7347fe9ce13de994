"""Entity detail envelopes: one entity plus one hop of relations."""

from __future__ import annotations

from pydantic import Field
from sqlmodel import SQLModel
from sqlmodel._compat import SQLModelConfig

from queuewatch.schemas.agents import AgentRead
from queuewatch.schemas.announcements import AnnouncementRead
from queuewatch.schemas.queues import QueueRead
from queuewatch.schemas.tasks import (
    PlacedTaskRead,
    RootWorkItemRead,
    TaskRead,
    WorkItemTaskRead,
)


class _Envelope(SQLModel):
    model_config = SQLModelConfig(populate_by_name=True)


class QueueDetail(_Envelope):
    """Queue plus every task placed in it, in serving order."""

    queue: QueueRead
    tasks: list[PlacedTaskRead] = Field(default_factory=list)


class TaskDetail(_Envelope):
    """Task with its parent, root work item and direct children."""

    task: TaskRead
    parent_task: TaskRead | None = Field(default=None, alias="parentTask")
    root_work_item: RootWorkItemRead | None = Field(default=None, alias="rootWorkItem")
    child_tasks: list[TaskRead] = Field(default_factory=list, alias="childTasks")


class RootWorkItemDetail(_Envelope):
    """Root work item and the tasks grouped under it."""

    root_work_item: RootWorkItemRead = Field(alias="rootWorkItem")
    tasks: list[WorkItemTaskRead] = Field(default_factory=list)


class AgentDetail(_Envelope):
    """All instances of one worker type and the work they currently hold."""

    agents: list[AgentRead] = Field(default_factory=list)
    active_tasks: list[TaskRead] = Field(default_factory=list, alias="activeTasks")


class AnnouncementDetail(_Envelope):
    """Announcement and the task it refers to, when any."""

    announcement: AnnouncementRead
    related_task: TaskRead | None = Field(default=None, alias="relatedTask")
