"""HTML rendering for the summary view and the drill-down modal frames.

Renderers are pure functions from typed payloads to HTML fragments. Every
related entity is emitted as an `EntityRef` marker so a click can be turned
back into a detail fetch; free-text fields go through `annotate`.
"""

from __future__ import annotations

import html
import json
from typing import TYPE_CHECKING

from queuewatch.ui.annotate import DEFAULT_POLICY, AnnotationPolicy, annotate
from queuewatch.ui.refs import EntityRef, entity_link

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime

    from queuewatch.schemas.agents import AgentRead, AgentRollupRead
    from queuewatch.schemas.announcements import AnnouncementRead
    from queuewatch.schemas.details import (
        AgentDetail,
        AnnouncementDetail,
        QueueDetail,
        RootWorkItemDetail,
        TaskDetail,
    )
    from queuewatch.schemas.files import FileContent
    from queuewatch.schemas.queues import QueueSummaryRead
    from queuewatch.schemas.status import StatusSummary
    from queuewatch.schemas.tasks import RootWorkItemRead, TaskRead

QUEUE_LABELS = {
    "requirements-research": "📋 Research",
    "planning": "📝 Planning",
    "execution": "⚙️ Execution",
    "pre-commit-check": "✅ Pre-Commit",
    "commit-build": "🔨 Commit/Build",
    "deploy": "🚀 Deploy",
    "e2e-test": "🧪 E2E Test",
    "announce": "📢 Announce",
}
STATUS_EMOJIS = {
    "pending": "⏳",
    "researching": "🔍",
    "planning": "📝",
    "executing": "⚙️",
    "checking": "✅",
    "building": "🔨",
    "deploying": "🚀",
    "testing": "🧪",
    "completed": "✅",
    "failed": "❌",
}
ANNOUNCEMENT_EMOJIS = {
    "error": "🔴",
    "work-completed": "✅",
    "work-taken": "🟢",
    "question": "❓",
}
SUMMARY_WORK_ITEM_LIMIT = 5
SUMMARY_ANNOUNCEMENT_LIMIT = 3
WORK_ITEM_TITLE_CHARS = 35
ANNOUNCEMENT_MESSAGE_CHARS = 50


def format_time(value: datetime | None) -> str:
    return value.strftime("%H:%M:%S") if value is not None else ""


def format_datetime(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value is not None else ""


def truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else f"{text[:limit]}..."


def queue_label(name: str) -> str:
    return QUEUE_LABELS.get(name, name)


def _empty(message: str) -> str:
    return f'<div class="empty">{html.escape(message)}</div>'


def _esc(value: object) -> str:
    return html.escape("" if value is None else str(value))


def _field_list(rows: Iterable[tuple[str, str]]) -> str:
    items = "".join(
        f"<dt>{html.escape(label)}</dt><dd>{value}</dd>" for label, value in rows if value
    )
    return f'<dl class="fields">{items}</dl>'


def _section(title: str, body: str) -> str:
    return f'<section class="detail-section"><h3>{html.escape(title)}</h3>{body}</section>'


def _text_block(value: str | None, policy: AnnotationPolicy) -> str:
    if not value:
        return ""
    return f'<pre class="text-block">{annotate(value, policy)}</pre>'


def task_link(task: TaskRead) -> str:
    return entity_link(EntityRef("task", str(task.id)), f"#{task.id} {task.title}")


def agent_link(name: str) -> str:
    return entity_link(EntityRef("agent", name), name)


def queue_link(name: str) -> str:
    return entity_link(EntityRef("queue", name), queue_label(name))


def root_work_item_link(item: RootWorkItemRead) -> str:
    return entity_link(EntityRef("root-work-item", str(item.id)), f"[{item.id}] {item.title}")


def _task_rows(tasks: Sequence[TaskRead], *, extra: dict[int, str] | None = None) -> str:
    rows = []
    for task in tasks:
        suffix = extra.get(task.id, "") if extra else ""
        rows.append(
            '<li class="task-row">'
            f"{task_link(task)} "
            f'<span class="task-status">[{_esc(task.status)}]</span> '
            f'<span class="task-priority">p{task.priority}</span>'
            f"{suffix}</li>",
        )
    return f'<ul class="task-list">{"".join(rows)}</ul>'


# Summary view sections


def progress_bar(queued: int, working: int) -> str:
    total = queued + working
    if total == 0:
        return (
            '<div class="progress-bar">'
            '<div class="progress-empty" style="width: 100%"></div></div>'
        )
    working_width = working / total * 100
    queued_width = queued / total * 100
    return (
        '<div class="progress-bar">'
        f'<div class="progress-working" style="width: {working_width:.1f}%"></div>'
        f'<div class="progress-queued" style="width: {queued_width:.1f}%"></div></div>'
    )


def render_queue_summary(queues: Sequence[QueueSummaryRead]) -> str:
    if not queues:
        return _empty("No queues found")
    rows = []
    for queue in queues:
        done = f' <span class="done">✓:{queue.done_last_hour}</span>' if queue.done_last_hour else ""
        rows.append(
            f'<div class="queue-item" {EntityRef("queue", queue.name).attributes()}>'
            f'<div class="queue-name">{html.escape(queue_label(queue.name))}</div>'
            f'<div class="progress-bar-container">{progress_bar(queue.queued, queue.in_progress)}</div>'
            f'<div class="queue-stats">Q:{queue.queued} W:{queue.in_progress}{done}</div>'
            "</div>",
        )
    return "".join(rows)


def render_work_items(items: Sequence[RootWorkItemRead]) -> str:
    if not items:
        return _empty("No active work items")
    rows = []
    for item in items[:SUMMARY_WORK_ITEM_LIMIT]:
        status_class = item.status if item.status in {"completed", "failed"} else ""
        finished = format_time(item.completed_at or item.failed_at)
        rows.append(
            f'<div class="work-item {status_class}" '
            f'{EntityRef("root-work-item", str(item.id)).attributes()}>'
            f"<span>{STATUS_EMOJIS.get(item.status, '❓')}</span>"
            f'<span class="work-item-id">[{item.id}]</span>'
            f'<span class="work-item-title">{_esc(truncate(item.title, WORK_ITEM_TITLE_CHARS))}</span>'
            f'<span class="work-item-status">[{_esc(item.status)}]'
            f"{' ' + finished if finished else ''}</span></div>",
        )
    return "".join(rows)


def render_agent_rollups(agents: Sequence[AgentRollupRead]) -> str:
    if not agents:
        return _empty("No agents running")
    rows = []
    for agent in agents:
        parts = []
        if agent.working:
            parts.append(f'<span class="working">🟢 {agent.working} working</span>')
        if agent.idle:
            parts.append(f'<span class="idle">🟡 {agent.idle} idle</span>')
        detail = f" {', '.join(parts)}" if parts else ""
        rows.append(
            f'<div class="agent-item" {EntityRef("agent", agent.name).attributes()}>'
            f'<span class="agent-script">{_esc(agent.script)}</span>'
            f'<span class="agent-count">({agent.total}){detail}</span></div>',
        )
    return "".join(rows)


def render_announcements(announcements: Sequence[AnnouncementRead]) -> str:
    if not announcements:
        return _empty("No recent announcements")
    rows = []
    for announcement in announcements[:SUMMARY_ANNOUNCEMENT_LIMIT]:
        emoji = ANNOUNCEMENT_EMOJIS.get(announcement.type, "📢")
        message = truncate(announcement.message, ANNOUNCEMENT_MESSAGE_CHARS)
        rows.append(
            f'<div class="announcement {_esc(announcement.type)}" '
            f'{EntityRef("announcement", str(announcement.id)).attributes()}>'
            f'<span class="announcement-message">{emoji} '
            f"{_esc(announcement.agent_name or 'system')}: {_esc(message)}</span>"
            f'<span class="announcement-meta">{format_time(announcement.created_at)}</span>'
            "</div>",
        )
    return "".join(rows)


def render_summary_sections(summary: StatusSummary) -> dict[str, str]:
    """Each main-view section rendered on its own, keyed by container id."""
    return {
        "queues": render_queue_summary(summary.queues),
        "work-items": render_work_items(summary.root_work_items),
        "agents": render_agent_rollups(summary.agents),
        "announcements": render_announcements(summary.announcements),
    }


# Modal detail frames


def render_queue_detail(
    detail: QueueDetail,
    policy: AnnotationPolicy = DEFAULT_POLICY,
) -> str:
    queue = detail.queue
    header = _field_list(
        [
            ("Queue", _esc(queue.name)),
            ("Description", annotate(queue.description, policy)),
        ],
    )
    if not detail.tasks:
        return header + _section("Tasks", _empty("No tasks in this queue"))
    placement = {
        task.id: f' <span class="queue-status">({_esc(task.queue_status)})</span>'
        for task in detail.tasks
    }
    return header + _section(f"Tasks ({len(detail.tasks)})", _task_rows(detail.tasks, extra=placement))


def render_task_detail(detail: TaskDetail, policy: AnnotationPolicy = DEFAULT_POLICY) -> str:
    task = detail.task
    fields = _field_list(
        [
            ("Title", _esc(task.title)),
            ("Status", _esc(task.status)),
            ("Priority", _esc(task.priority)),
            ("Claimed by", agent_link(task.claimed_by) if task.claimed_by else ""),
            ("Claimed at", _esc(format_datetime(task.claimed_at))),
            ("Created", _esc(format_datetime(task.created_at))),
            ("Completed", _esc(format_datetime(task.completed_at))),
            ("Parent task", task_link(detail.parent_task) if detail.parent_task else ""),
            (
                "Root work item",
                root_work_item_link(detail.root_work_item) if detail.root_work_item else "",
            ),
        ],
    )
    sections = [fields]
    for label, value in (
        ("Description", task.description),
        ("Result", task.result),
        ("Error", task.error),
    ):
        if value:
            sections.append(_section(label, _text_block(value, policy)))
    if detail.child_tasks:
        sections.append(
            _section(f"Child tasks ({len(detail.child_tasks)})", _task_rows(detail.child_tasks)),
        )
    return "".join(sections)


def render_root_work_item_detail(
    detail: RootWorkItemDetail,
    policy: AnnotationPolicy = DEFAULT_POLICY,
) -> str:
    item = detail.root_work_item
    fields = _field_list(
        [
            ("Title", _esc(item.title)),
            ("Status", f"{STATUS_EMOJIS.get(item.status, '❓')} {_esc(item.status)}"),
            ("Created", _esc(format_datetime(item.created_at))),
            ("Started", _esc(format_datetime(item.started_at))),
            ("Completed", _esc(format_datetime(item.completed_at))),
            ("Failed", _esc(format_datetime(item.failed_at))),
        ],
    )
    sections = [fields]
    if item.description:
        sections.append(_section("Description", _text_block(item.description, policy)))
    if not detail.tasks:
        sections.append(_section("Tasks", _empty("No tasks yet")))
        return "".join(sections)
    queues = {
        task.id: f" in {queue_link(task.queue_name)}" for task in detail.tasks if task.queue_name
    }
    sections.append(_section(f"Tasks ({len(detail.tasks)})", _task_rows(detail.tasks, extra=queues)))
    return "".join(sections)


def _agent_instance_row(agent: AgentRead) -> str:
    current = (
        " "
        + entity_link(EntityRef("task", str(agent.current_task_id)), f"task #{agent.current_task_id}")
        if agent.current_task_id is not None
        else ""
    )
    return (
        '<li class="agent-instance">'
        f'<span class="agent-instance-id">{_esc(agent.instance_id or agent.id)}</span> '
        f'<span class="agent-status {_esc(agent.status)}">{_esc(agent.status)}</span> '
        f'<span class="agent-pid">pid {_esc(agent.pid)}</span> '
        f'<span class="agent-heartbeat">♥ {_esc(format_datetime(agent.last_heartbeat))}</span>'
        f"{current}</li>"
    )


def render_agent_detail(name: str, detail: AgentDetail) -> str:
    if detail.agents:
        instances = "".join(_agent_instance_row(agent) for agent in detail.agents)
        body = _section(f"Instances ({len(detail.agents)})", f'<ul class="agent-list">{instances}</ul>')
    else:
        body = _section("Instances", _empty(f"No running instances of {name}"))
    if detail.active_tasks:
        body += _section(f"Active tasks ({len(detail.active_tasks)})", _task_rows(detail.active_tasks))
    else:
        body += _section("Active tasks", _empty("No active tasks"))
    return body


def render_announcement_detail(
    detail: AnnouncementDetail,
    policy: AnnotationPolicy = DEFAULT_POLICY,
) -> str:
    announcement = detail.announcement
    fields = _field_list(
        [
            ("Type", f"{ANNOUNCEMENT_EMOJIS.get(announcement.type, '📢')} {_esc(announcement.type)}"),
            ("Agent", agent_link(announcement.agent_name) if announcement.agent_name else "system"),
            ("Created", _esc(format_datetime(announcement.created_at))),
            ("Task", task_link(detail.related_task) if detail.related_task else ""),
        ],
    )
    sections = [fields, _section("Message", _text_block(announcement.message, policy))]
    if announcement.context:
        sections.append(_section("Context", _text_block(announcement.context, policy)))
    return "".join(sections)


def render_file(file: FileContent) -> str:
    # `html` comes from the markdown renderer on the server and is shown as-is.
    return f'<div class="file-path">{_esc(file.path)}</div><article class="markdown">{file.html}</article>'


def render_error(message: str) -> str:
    return f'<div class="error">{html.escape(message)}</div>'


def render_dashboard_page(
    sections: dict[str, str],
    *,
    generated_at: str,
    refresh_seconds: float | None = None,
    reload_stream: str | None = None,
) -> str:
    """Full main-view page built from independently rendered sections.

    With `refresh_seconds` the browser refetches the page on that cadence. With
    `reload_stream` it also subscribes to that event stream and reloads on every
    `reload` event.
    """
    head = ""
    if refresh_seconds is not None:
        head = f'<meta http-equiv="refresh" content="{int(refresh_seconds)}">'
    script = ""
    if reload_stream is not None:
        script = (
            "<script>new EventSource(" + json.dumps(reload_stream) + ")"
            ".addEventListener(\"reload\", () => location.reload());</script>"
        )
    blocks = "".join(
        f'<section class="panel"><h2>{html.escape(name.replace("-", " ").upper())}</h2>'
        f'<div id="{name}">{body}</div></section>'
        for name, body in sections.items()
    )
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\"><title>Queue Status</title>"
        f"{head}</head>"
        f'<body><div class="container queue-status">{blocks}'
        f'<footer>Updated <span id="timestamp">{html.escape(generated_at)}</span></footer>'
        f"</div>{script}</body></html>"
    )
