"""Shared base for read-only mappings over the externally owned queue store."""

from __future__ import annotations

from sqlmodel import SQLModel


class StoreModel(SQLModel):
    """Base class for tables written by the orchestration system and only read here."""
