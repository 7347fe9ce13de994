"""Markdown file reads confined to the project root."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

import markdown

from queuewatch.core.errors import AccessDenied, NotFoundError, ValidationFailure
from queuewatch.core.logging import get_logger
from queuewatch.schemas.files import FileContent

logger = get_logger(__name__)

MARKDOWN_EXTENSIONS = frozenset({".md", ".markdown"})
MARKDOWN_RENDER_EXTENSIONS = ("fenced_code", "tables")


def resolve_project_path(raw_path: str, *, root: Path) -> Path:
    """Normalize `raw_path` against `root` without touching the filesystem.

    Relative paths are taken from `root`. Anything that normalizes outside
    `root` is refused, as is any non-markdown extension.
    """
    cleaned = raw_path.strip()
    if not cleaned:
        raise ValidationFailure("A file path is required")
    candidate = Path(cleaned)
    if not candidate.is_absolute():
        candidate = root / candidate
    normalized = Path(os.path.normpath(candidate))
    if not normalized.is_relative_to(root):
        logger.warning("files.access_denied", extra={"requested_path": cleaned})
        raise AccessDenied("Access denied")
    if normalized.suffix.lower() not in MARKDOWN_EXTENSIONS:
        raise ValidationFailure("Only markdown files can be viewed")
    return normalized


def render_markdown(content: str) -> str:
    return markdown.markdown(content, extensions=list(MARKDOWN_RENDER_EXTENSIONS))


async def read_markdown_file(raw_path: str, *, root: Path) -> FileContent:
    """Read and render one markdown file from inside `root`."""
    root = root.resolve()
    normalized = resolve_project_path(raw_path, root=root)
    # Symlinks can still point outside the root once resolved.
    resolved = await asyncio.to_thread(normalized.resolve)
    if not resolved.is_relative_to(root):
        logger.warning("files.access_denied", extra={"requested_path": raw_path})
        raise AccessDenied("Access denied")
    if not await asyncio.to_thread(resolved.is_file):
        raise NotFoundError("File not found")
    content = await asyncio.to_thread(resolved.read_text, encoding="utf-8", errors="replace")
    return FileContent(
        path=normalized.relative_to(root).as_posix(),
        content=content,
        html=render_markdown(content),
    )
