"""Schemas for project file reads."""

from __future__ import annotations

from sqlmodel import SQLModel


class FileContent(SQLModel):
    """Raw markdown plus its rendered HTML."""

    path: str
    content: str
    html: str
