"""Domain error taxonomy shared by resolvers and the HTTP layer."""

from __future__ import annotations

from fastapi import status


class DashboardError(Exception):
    """Base error carrying the HTTP status the API layer should emit."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(DashboardError):
    """No row matches the requested id or name."""

    status_code = status.HTTP_404_NOT_FOUND


class ValidationFailure(DashboardError):
    """Request input rejected before any I/O."""

    status_code = status.HTTP_400_BAD_REQUEST


class AccessDenied(ValidationFailure):
    """Requested path resolves outside the project root."""

    status_code = status.HTTP_403_FORBIDDEN


class BackingStoreUnavailable(DashboardError):
    """The relational store is missing or unreachable."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class QueryFailure(DashboardError):
    """A query ran but its rows could not be parsed into typed records."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
