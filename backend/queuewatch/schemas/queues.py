"""Schemas for queue rows and queue rollups."""

from __future__ import annotations

from sqlmodel import SQLModel


class QueueRead(SQLModel):
    """Queue identity as stored."""

    id: int
    name: str
    description: str | None = None


class QueueSummaryRead(SQLModel):
    """Queue with placement counts derived from `queue_tasks`."""

    name: str
    description: str | None = None
    queued: int = 0
    in_progress: int = 0
    done_last_hour: int = 0
