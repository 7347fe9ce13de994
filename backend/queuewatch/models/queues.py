"""Queue and queue placement tables."""

from __future__ import annotations

from datetime import datetime

from sqlmodel import Field

from queuewatch.core.time import utcnow
from queuewatch.models.base import StoreModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Queue(StoreModel, table=True):
    """Named processing stage that tasks are placed into."""

    __tablename__ = "queues"  # pyright: ignore[reportAssignmentType]

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(unique=True, index=True)
    description: str | None = None


class QueueTask(StoreModel, table=True):
    """Placement of a task in a queue, with a status independent of the task's own."""

    __tablename__ = "queue_tasks"  # pyright: ignore[reportAssignmentType]

    id: int | None = Field(default=None, primary_key=True)
    queue_id: int = Field(foreign_key="queues.id", index=True)
    task_id: int = Field(foreign_key="tasks.id", index=True)
    status: str = Field(default="queued", index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
