"""Liveness and readiness check payloads."""

from __future__ import annotations

from pydantic import Field
from sqlmodel import SQLModel


class HealthStatusResponse(SQLModel):
    """Liveness payload; `ok` is true whenever the process can answer."""

    ok: bool = Field(
        description="Indicates whether the check succeeded.",
        examples=[True],
    )


class ReadinessStatusResponse(HealthStatusResponse):
    """Readiness payload that also reports whether the queue store can be opened."""

    store_available: bool = Field(
        description="False when the SQLite store file is missing or unreachable.",
        examples=[True],
    )
