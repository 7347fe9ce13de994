"""System and worker announcement table."""

from __future__ import annotations

from datetime import datetime

from sqlmodel import Field

from queuewatch.core.time import utcnow
from queuewatch.models.base import StoreModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Announcement(StoreModel, table=True):
    """Timestamped event message emitted by a worker or the system."""

    __tablename__ = "announcements"  # pyright: ignore[reportAssignmentType]

    id: int | None = Field(default=None, primary_key=True)
    type: str = Field(default="other", index=True)
    agent_name: str | None = None
    message: str
    context: str | None = None
    task_id: int | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=utcnow, index=True)
