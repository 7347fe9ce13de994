"""Project markdown file viewer endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from queuewatch.core.config import settings
from queuewatch.schemas.errors import ErrorResponse
from queuewatch.schemas.files import FileContent
from queuewatch.services.files import read_markdown_file

router = APIRouter(tags=["files"])
PATH_QUERY = Query(default="", description="Project-relative or absolute markdown path.")


@router.get(
    "/file",
    response_model=FileContent,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_403_FORBIDDEN: {"model": ErrorResponse},
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    },
)
async def get_file(path: str = PATH_QUERY) -> FileContent:
    """Raw and rendered content of a markdown file under the project root."""
    return await read_markdown_file(path, root=settings.project_root)
