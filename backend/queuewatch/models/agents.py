"""Worker process instance table."""

from __future__ import annotations

from datetime import datetime

from sqlmodel import Field

from queuewatch.core.time import utcnow
from queuewatch.models.base import StoreModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Agent(StoreModel, table=True):
    """One running worker instance; several rows may share a worker-type `name`."""

    __tablename__ = "agents"  # pyright: ignore[reportAssignmentType]

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    instance_id: str | None = Field(default=None, index=True)
    pid: int | None = None
    status: str = Field(default="idle", index=True)
    last_heartbeat: datetime | None = None
    current_task_id: int | None = None
    workspace_path: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
