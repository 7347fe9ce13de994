"""Task and root work item tables."""

from __future__ import annotations

from datetime import datetime

from sqlmodel import Field

from queuewatch.core.time import utcnow
from queuewatch.models.base import StoreModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class RootWorkItem(StoreModel, table=True):
    """Top-level unit of work whose execution is split into a tree of tasks."""

    __tablename__ = "root_work_items"  # pyright: ignore[reportAssignmentType]

    id: int | None = Field(default=None, primary_key=True)
    title: str
    description: str | None = None
    status: str = Field(default="pending", index=True)
    created_at: datetime = Field(default_factory=utcnow)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    failed_at: datetime | None = None


class Task(StoreModel, table=True):
    """Unit of work moving through queues, optionally nested under a parent task."""

    __tablename__ = "tasks"  # pyright: ignore[reportAssignmentType]

    id: int | None = Field(default=None, primary_key=True)
    title: str
    description: str | None = None
    status: str = Field(default="pending", index=True)
    priority: int = Field(default=0, index=True)
    claimed_by: str | None = Field(default=None, index=True)
    claimed_at: datetime | None = None
    completed_at: datetime | None = None
    result: str | None = None
    error: str | None = None
    parent_task_id: int | None = Field(default=None, foreign_key="tasks.id", index=True)
    root_work_item_id: int | None = Field(
        default=None,
        foreign_key="root_work_items.id",
        index=True,
    )
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
