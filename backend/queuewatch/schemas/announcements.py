"""Schemas for announcements."""

from __future__ import annotations

from datetime import datetime

from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class AnnouncementRead(SQLModel):
    """Announcement payload returned by read endpoints."""

    id: int
    type: str
    agent_name: str | None = None
    message: str
    context: str | None = None
    task_id: int | None = None
    created_at: datetime
