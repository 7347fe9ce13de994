"""Async HTTP fetch layer for the dashboard API."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import ValidationError
from sqlmodel import SQLModel

from queuewatch.core.logging import get_logger
from queuewatch.schemas.agents import AgentControlResult
from queuewatch.schemas.details import (
    AgentDetail,
    AnnouncementDetail,
    QueueDetail,
    RootWorkItemDetail,
    TaskDetail,
)
from queuewatch.schemas.files import FileContent
from queuewatch.schemas.status import StatusSummary

if TYPE_CHECKING:
    from types import TracebackType

SchemaT = TypeVar("SchemaT", bound=SQLModel)

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class DashboardClientError(Exception):
    """The API answered with an `{error}` payload or an unusable body."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class DashboardClient:
    """Typed wrapper over the dashboard JSON endpoints."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    @property
    def http(self) -> httpx.AsyncClient:
        return self._http

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> DashboardClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def _request(
        self,
        schema: type[SchemaT],
        method: str,
        url: str,
        **kwargs: Any,
    ) -> SchemaT:
        response = await self._http.request(method, url, **kwargs)
        try:
            body = response.json()
        except ValueError as exc:
            raise DashboardClientError(
                f"Non-JSON response from {url}",
                status_code=response.status_code,
            ) from exc
        if isinstance(body, dict) and "error" in body:
            raise DashboardClientError(str(body["error"]), status_code=response.status_code)
        if response.is_error:
            raise DashboardClientError(
                f"HTTP {response.status_code} from {url}",
                status_code=response.status_code,
            )
        try:
            return schema.model_validate(body)
        except ValidationError as exc:
            logger.warning("client.response.invalid", extra={"url": url, "schema": schema.__name__})
            raise DashboardClientError(f"Malformed {schema.__name__} payload") from exc

    async def get_status(self) -> StatusSummary:
        return await self._request(StatusSummary, "GET", "/api/status")

    async def get_queue(self, name: str) -> QueueDetail:
        return await self._request(QueueDetail, "GET", f"/api/queue/{quote(name, safe='')}")

    async def get_task(self, task_id: int | str) -> TaskDetail:
        return await self._request(TaskDetail, "GET", f"/api/task/{task_id}")

    async def get_root_work_item(self, item_id: int | str) -> RootWorkItemDetail:
        return await self._request(RootWorkItemDetail, "GET", f"/api/root-work-item/{item_id}")

    async def get_agent(self, name: str) -> AgentDetail:
        return await self._request(AgentDetail, "GET", f"/api/agent/{quote(name, safe='')}")

    async def get_announcement(self, announcement_id: int | str) -> AnnouncementDetail:
        return await self._request(
            AnnouncementDetail,
            "GET",
            f"/api/announcement/{announcement_id}",
        )

    async def get_file(self, path: str) -> FileContent:
        return await self._request(FileContent, "GET", "/api/file", params={"path": path})

    async def start_agent(self, agent_type: str) -> AgentControlResult:
        return await self._request(
            AgentControlResult,
            "POST",
            "/api/agent/start",
            json={"agentType": agent_type},
        )

    async def stop_agent(self, agent_type: str) -> AgentControlResult:
        return await self._request(
            AgentControlResult,
            "POST",
            "/api/agent/stop",
            json={"agentType": agent_type},
        )
