"""Schemas for worker instances, worker rollups and process control."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field
from sqlmodel import SQLModel
from sqlmodel._compat import SQLModelConfig

RUNTIME_ANNOTATION_TYPES = (datetime,)


class AgentRead(SQLModel):
    """One worker instance row."""

    id: int
    name: str
    instance_id: str | None = None
    pid: int | None = None
    status: str
    last_heartbeat: datetime | None = None
    current_task_id: int | None = None
    workspace_path: str | None = None
    created_at: datetime


class AgentRollupRead(SQLModel):
    """Instance counts for one worker type; stale heartbeats count toward `total` only."""

    name: str
    script: str
    total: int = 0
    working: int = 0
    idle: int = 0


class AgentControlRequest(SQLModel):
    """Body of the start/stop worker endpoints."""

    model_config = SQLModelConfig(populate_by_name=True)

    agent_type: str = Field(alias="agentType", min_length=1)


class AgentControlResult(SQLModel):
    """Outcome of a start/stop request against the process collaborator."""

    ok: bool = True
    agent_type: str = Field(alias="agentType")
    pid: int | None = None
    stopped: int | None = None

    model_config = SQLModelConfig(populate_by_name=True)
