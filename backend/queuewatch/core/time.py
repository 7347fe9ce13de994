"""Time helpers shared by resolvers and schemas."""

from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime, matching SQLite `datetime('now')`."""
    return datetime.now(UTC).replace(tzinfo=None)
