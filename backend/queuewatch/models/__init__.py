"""Model exports for SQLAlchemy/SQLModel metadata discovery."""

from queuewatch.models.agents import Agent
from queuewatch.models.announcements import Announcement
from queuewatch.models.queues import Queue, QueueTask
from queuewatch.models.tasks import RootWorkItem, Task

__all__ = [
    "Agent",
    "Announcement",
    "Queue",
    "QueueTask",
    "RootWorkItem",
    "Task",
]
