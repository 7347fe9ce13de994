"""Drill-down controller: fetch detail, render it, and move the modal stack.

Every click funnels through `open_entity` (from the main view) or `follow`
(from inside the modal). Back-navigation never refetches; earlier frames keep
their rendered content. In-flight fetches are not cancelled when a newer click
lands first, so a slow response can still push its frame afterwards.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from queuewatch.core.logging import get_logger
from queuewatch.ui import render
from queuewatch.ui.annotate import DEFAULT_POLICY, AnnotationPolicy
from queuewatch.ui.client import DashboardClientError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from queuewatch.schemas.agents import AgentControlResult
    from queuewatch.ui.client import DashboardClient
    from queuewatch.ui.navigation import ModalNavigator, NavigationStack
    from queuewatch.ui.refs import EntityRef

logger = get_logger(__name__)

ERROR_TITLE = "Error"


class DrillDownController:
    """Turns entity refs into modal frames."""

    def __init__(
        self,
        client: DashboardClient,
        navigator: ModalNavigator,
        *,
        policy: AnnotationPolicy = DEFAULT_POLICY,
        on_refresh: Callable[[], Awaitable[object]] | None = None,
    ) -> None:
        self.client = client
        self.navigator = navigator
        self.policy = policy
        self.on_refresh = on_refresh

    async def _render(self, ref: EntityRef) -> tuple[str, str]:
        if ref.kind == "queue":
            queue = await self.client.get_queue(ref.key)
            return (
                f"Queue: {render.queue_label(ref.key)}",
                render.render_queue_detail(queue, self.policy),
            )
        if ref.kind == "task":
            task = await self.client.get_task(int(ref.key))
            return (
                f"Task #{task.task.id}: {task.task.title}",
                render.render_task_detail(task, self.policy),
            )
        if ref.kind == "root-work-item":
            item = await self.client.get_root_work_item(int(ref.key))
            return (
                f"Work Item #{item.root_work_item.id}: {item.root_work_item.title}",
                render.render_root_work_item_detail(item, self.policy),
            )
        if ref.kind == "agent":
            agent = await self.client.get_agent(ref.key)
            return f"Agent: {ref.key}", render.render_agent_detail(ref.key, agent)
        if ref.kind == "announcement":
            announcement = await self.client.get_announcement(int(ref.key))
            return (
                f"Announcement #{announcement.announcement.id}",
                render.render_announcement_detail(announcement, self.policy),
            )
        file = await self.client.get_file(ref.key)
        return f"File: {file.path}", render.render_file(file)

    async def _load(self, ref: EntityRef) -> tuple[str, str]:
        try:
            return await self._render(ref)
        except DashboardClientError as exc:
            logger.warning(
                "drilldown.fetch.rejected",
                extra={"kind": ref.kind, "key": ref.key, "error": exc.message},
            )
            return ERROR_TITLE, render.render_error(exc.message)
        except httpx.HTTPError as exc:
            logger.warning(
                "drilldown.fetch.failed",
                extra={"kind": ref.kind, "key": ref.key, "error": str(exc)},
            )
            return ERROR_TITLE, render.render_error(f"Failed to load {ref.kind} {ref.key}")
        except ValueError:
            return ERROR_TITLE, render.render_error(f"Invalid {ref.kind} id: {ref.key}")

    async def open_entity(self, ref: EntityRef) -> NavigationStack:
        """Entry point from the summary view: replaces any open modal."""
        title, content = await self._load(ref)
        return self.navigator.open(title, content)

    async def follow(self, ref: EntityRef) -> NavigationStack:
        """Drill one level deeper from inside the modal."""
        title, content = await self._load(ref)
        return self.navigator.push(title, content)

    def back(self) -> NavigationStack:
        return self.navigator.back()

    def close(self) -> NavigationStack:
        return self.navigator.close()

    async def _control_agent(
        self,
        action: Callable[[str], Awaitable[AgentControlResult]],
        agent_type: str,
    ) -> AgentControlResult | None:
        try:
            result = await action(agent_type)
        except (DashboardClientError, httpx.HTTPError) as exc:
            logger.warning(
                "drilldown.agent_control.failed",
                extra={"agent_type": agent_type, "error": str(exc)},
            )
            return None
        if self.on_refresh is not None:
            await self.on_refresh()
        return result

    async def start_agent(self, agent_type: str) -> AgentControlResult | None:
        """Start a worker and refresh the summary; None when the request failed."""
        return await self._control_agent(self.client.start_agent, agent_type)

    async def stop_agent(self, agent_type: str) -> AgentControlResult | None:
        """Stop a worker type and refresh the summary; None when the request failed."""
        return await self._control_agent(self.client.stop_agent, agent_type)
