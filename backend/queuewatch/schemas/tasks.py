"""Schemas for tasks and root work items."""

from __future__ import annotations

from datetime import datetime

from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class TaskRead(SQLModel):
    """Task payload returned by read endpoints."""

    id: int
    title: str
    description: str | None = None
    status: str
    priority: int = 0
    claimed_by: str | None = None
    claimed_at: datetime | None = None
    completed_at: datetime | None = None
    result: str | None = None
    error: str | None = None
    parent_task_id: int | None = None
    root_work_item_id: int | None = None
    created_at: datetime
    updated_at: datetime | None = None


class PlacedTaskRead(TaskRead):
    """Task as it sits in one queue, with the placement's own status."""

    queue_status: str
    placement_id: int


class WorkItemTaskRead(TaskRead):
    """Task under a root work item, tagged with the queue it currently sits in."""

    queue_name: str | None = None


class RootWorkItemRead(SQLModel):
    """Root work item payload returned by read endpoints."""

    id: int
    title: str
    description: str | None = None
    status: str
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    failed_at: datetime | None = None
