"""Schema for the polled status summary."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field
from sqlmodel import SQLModel
from sqlmodel._compat import SQLModelConfig

from queuewatch.schemas.agents import AgentRollupRead
from queuewatch.schemas.announcements import AnnouncementRead
from queuewatch.schemas.queues import QueueSummaryRead
from queuewatch.schemas.tasks import RootWorkItemRead

RUNTIME_ANNOTATION_TYPES = (datetime,)


class StatusSummary(SQLModel):
    """Everything the dashboard main view renders, generated in one call."""

    model_config = SQLModelConfig(populate_by_name=True)

    queues: list[QueueSummaryRead] = Field(default_factory=list)
    root_work_items: list[RootWorkItemRead] = Field(default_factory=list, alias="rootWorkItems")
    agents: list[AgentRollupRead] = Field(default_factory=list)
    announcements: list[AnnouncementRead] = Field(default_factory=list)
    timestamp: datetime
