"""Public schema exports shared across API route modules."""

from queuewatch.schemas.agents import AgentControlRequest, AgentControlResult, AgentRead, AgentRollupRead
from queuewatch.schemas.announcements import AnnouncementRead
from queuewatch.schemas.details import (
    AgentDetail,
    AnnouncementDetail,
    QueueDetail,
    RootWorkItemDetail,
    TaskDetail,
)
from queuewatch.schemas.errors import ErrorResponse
from queuewatch.schemas.files import FileContent
from queuewatch.schemas.health import HealthStatusResponse, ReadinessStatusResponse
from queuewatch.schemas.queues import QueueRead, QueueSummaryRead
from queuewatch.schemas.status import StatusSummary
from queuewatch.schemas.tasks import PlacedTaskRead, RootWorkItemRead, TaskRead, WorkItemTaskRead

__all__ = [
    "AgentControlRequest",
    "AgentControlResult",
    "AgentDetail",
    "AgentRead",
    "AgentRollupRead",
    "AnnouncementDetail",
    "AnnouncementRead",
    "ErrorResponse",
    "FileContent",
    "HealthStatusResponse",
    "ReadinessStatusResponse",
    "PlacedTaskRead",
    "QueueDetail",
    "QueueRead",
    "QueueSummaryRead",
    "RootWorkItemDetail",
    "RootWorkItemRead",
    "StatusSummary",
    "TaskDetail",
    "TaskRead",
    "WorkItemTaskRead",
]
