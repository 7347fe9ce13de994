# ruff: noqa: INP001
"""Entity query resolver tests against an in-memory store."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlmodel import SQLModel, col, func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from queuewatch.core.errors import NotFoundError
from queuewatch.core.time import utcnow
from queuewatch.models.agents import Agent
from queuewatch.models.announcements import Announcement
from queuewatch.models.queues import Queue, QueueTask
from queuewatch.models.tasks import RootWorkItem, Task
from queuewatch.services import resolvers


async def _make_engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)
    return engine


async def _seed_pipeline(session: AsyncSession) -> None:
    now = utcnow()
    session.add_all(
        [
            Queue(id=1, name="execution", description="Runs plans"),
            Queue(id=2, name="planning", description="Writes plans"),
            Queue(id=3, name="zeta-custom"),
            Queue(id=4, name="alpha-custom"),
            Queue(id=5, name="requirements-research"),
            RootWorkItem(id=1, title="Ship search", status="executing", created_at=now),
        ],
    )
    session.add_all(
        [
            Task(id=1, title="plan search", status="completed", priority=5, root_work_item_id=1,
                 created_at=now - timedelta(minutes=30)),
            Task(id=2, title="low", status="queued", priority=5, root_work_item_id=1,
                 parent_task_id=1, created_at=now - timedelta(minutes=20)),
            Task(id=3, title="high", status="queued", priority=10, root_work_item_id=1,
                 parent_task_id=1, created_at=now - timedelta(minutes=10)),
            Task(id=4, title="running", status="in_progress", priority=5, claimed_by="execution",
                 root_work_item_id=1, parent_task_id=1, created_at=now - timedelta(minutes=20)),
        ],
    )
    session.add_all(
        [
            QueueTask(id=1, queue_id=2, task_id=1, status="completed", updated_at=now),
            QueueTask(id=2, queue_id=1, task_id=2, status="queued"),
            QueueTask(id=3, queue_id=1, task_id=3, status="queued"),
            QueueTask(id=4, queue_id=1, task_id=4, status="in_progress"),
            QueueTask(id=5, queue_id=2, task_id=2, status="completed",
                      updated_at=now - timedelta(hours=3)),
        ],
    )
    await session.commit()


@pytest.mark.asyncio
async def test_queue_summary_orders_by_stage_then_alphabetically() -> None:
    engine = await _make_engine()
    async with AsyncSession(engine, expire_on_commit=False) as session:
        await _seed_pipeline(session)
        queues = await resolvers.resolve_queue_summary(session)

    assert [q.name for q in queues] == [
        "requirements-research",
        "planning",
        "execution",
        "alpha-custom",
        "zeta-custom",
    ]
    by_name = {q.name: q for q in queues}
    assert (by_name["execution"].queued, by_name["execution"].in_progress) == (2, 1)
    # Only the placement completed within the hour counts.
    assert by_name["planning"].done_last_hour == 1
    assert by_name["alpha-custom"].queued == 0


@pytest.mark.asyncio
async def test_queue_summary_counts_match_independent_placement_counts() -> None:
    engine = await _make_engine()
    async with AsyncSession(engine, expire_on_commit=False) as session:
        await _seed_pipeline(session)
        queues = await resolvers.resolve_queue_summary(session)
        rows = await session.exec(
            select(Queue.name, func.count(col(QueueTask.id)))
            .join(QueueTask, col(QueueTask.queue_id) == col(Queue.id))
            .where(col(QueueTask.status).in_(["queued", "in_progress"]))
            .group_by(Queue.name),
        )
        independent = dict(rows.all())

    for queue in queues:
        assert queue.queued + queue.in_progress == independent.get(queue.name, 0)


@pytest.mark.asyncio
async def test_queue_detail_orders_by_priority_then_age() -> None:
    engine = await _make_engine()
    async with AsyncSession(engine, expire_on_commit=False) as session:
        await _seed_pipeline(session)
        detail = await resolvers.resolve_queue_detail(session, "execution")

    assert detail.queue.name == "execution"
    # Priority 10 first; the two priority-5 tasks share a creation time and keep placement order.
    assert [t.id for t in detail.tasks] == [3, 2, 4]
    assert [t.queue_status for t in detail.tasks] == ["queued", "queued", "in_progress"]


@pytest.mark.asyncio
async def test_queue_detail_two_priorities_scenario() -> None:
    engine = await _make_engine()
    async with AsyncSession(engine, expire_on_commit=False) as session:
        session.add(Queue(id=1, name="execution"))
        session.add_all([Task(id=1, title="p5", priority=5), Task(id=2, title="p10", priority=10)])
        session.add_all(
            [QueueTask(queue_id=1, task_id=1), QueueTask(queue_id=1, task_id=2)],
        )
        await session.commit()
        detail = await resolvers.resolve_queue_detail(session, "execution")

    assert [t.priority for t in detail.tasks] == [10, 5]


@pytest.mark.asyncio
async def test_queue_detail_unknown_queue_raises_not_found() -> None:
    engine = await _make_engine()
    async with AsyncSession(engine, expire_on_commit=False) as session:
        with pytest.raises(NotFoundError, match="Queue not found"):
            await resolvers.resolve_queue_detail(session, "missing")


@pytest.mark.asyncio
async def test_task_detail_includes_one_hop_relations() -> None:
    engine = await _make_engine()
    async with AsyncSession(engine, expire_on_commit=False) as session:
        await _seed_pipeline(session)
        parent = await resolvers.resolve_task_detail(session, 1)
        child = await resolvers.resolve_task_detail(session, 3)

    assert parent.parent_task is None
    assert parent.root_work_item is not None and parent.root_work_item.id == 1
    # Tasks 2 and 4 share a creation time; id breaks the tie.
    assert [t.id for t in parent.child_tasks] == [2, 4, 3]
    assert child.parent_task is not None and child.parent_task.id == 1
    assert child.child_tasks == []


@pytest.mark.asyncio
async def test_task_detail_is_idempotent() -> None:
    engine = await _make_engine()
    async with AsyncSession(engine, expire_on_commit=False) as session:
        await _seed_pipeline(session)
        first = await resolvers.resolve_task_detail(session, 1)
        second = await resolvers.resolve_task_detail(session, 1)

    assert first.model_dump() == second.model_dump()


@pytest.mark.asyncio
async def test_task_detail_missing_task_raises_not_found() -> None:
    engine = await _make_engine()
    async with AsyncSession(engine, expire_on_commit=False) as session:
        with pytest.raises(NotFoundError):
            await resolvers.resolve_task_detail(session, 999)


@pytest.mark.asyncio
async def test_root_work_item_detail_tags_current_queue() -> None:
    engine = await _make_engine()
    async with AsyncSession(engine, expire_on_commit=False) as session:
        await _seed_pipeline(session)
        detail = await resolvers.resolve_root_work_item_detail(session, 1)

    queue_by_task = {t.id: t.queue_name for t in detail.tasks}
    # Task 1 only has a completed placement; task 2 was re-queued into execution.
    assert queue_by_task == {1: None, 2: "execution", 3: "execution", 4: "execution"}
    assert [t.id for t in detail.tasks] == [1, 2, 4, 3]


@pytest.mark.asyncio
async def test_root_work_item_detail_missing_raises_not_found() -> None:
    engine = await _make_engine()
    async with AsyncSession(engine, expire_on_commit=False) as session:
        with pytest.raises(NotFoundError):
            await resolvers.resolve_root_work_item_detail(session, 42)


@pytest.mark.asyncio
async def test_agent_detail_for_unknown_worker_is_empty() -> None:
    engine = await _make_engine()
    async with AsyncSession(engine, expire_on_commit=False) as session:
        detail = await resolvers.resolve_agent_detail(session, "nonexistent-worker")

    assert detail.model_dump(by_alias=True) == {"agents": [], "activeTasks": []}


@pytest.mark.asyncio
async def test_agent_detail_lists_instances_and_active_claims() -> None:
    engine = await _make_engine()
    now = utcnow()
    async with AsyncSession(engine, expire_on_commit=False) as session:
        await _seed_pipeline(session)
        session.add_all(
            [
                Agent(name="execution", instance_id="exec-a", pid=101, status="idle",
                      last_heartbeat=now - timedelta(minutes=5)),
                Agent(name="execution", instance_id="exec-b", pid=102, status="working",
                      last_heartbeat=now - timedelta(minutes=1)),
                Agent(name="planning", instance_id="plan-a", status="idle", last_heartbeat=now),
                Task(id=10, title="claimed by instance", status="in_progress", claimed_by="exec-b"),
                Task(id=11, title="finished", status="completed", claimed_by="execution"),
            ],
        )
        await session.commit()
        detail = await resolvers.resolve_agent_detail(session, "execution")

    assert [a.instance_id for a in detail.agents] == ["exec-b", "exec-a"]
    assert sorted(t.id for t in detail.active_tasks) == [4, 10]


@pytest.mark.asyncio
async def test_announcement_detail_includes_related_task() -> None:
    engine = await _make_engine()
    async with AsyncSession(engine, expire_on_commit=False) as session:
        await _seed_pipeline(session)
        session.add_all(
            [
                Announcement(id=1, type="work-taken", agent_name="execution",
                             message="took task", task_id=4),
                Announcement(id=2, type="other", message="hello"),
            ],
        )
        await session.commit()
        linked = await resolvers.resolve_announcement_detail(session, 1)
        unlinked = await resolvers.resolve_announcement_detail(session, 2)

    assert linked.related_task is not None and linked.related_task.title == "running"
    assert unlinked.related_task is None
    with pytest.raises(NotFoundError):
        async with AsyncSession(engine, expire_on_commit=False) as session:
            await resolvers.resolve_announcement_detail(session, 3)


def test_queue_sort_key_places_unknown_queues_last() -> None:
    names = ["zz", "deploy", "aa", "requirements-research"]
    assert sorted(names, key=resolvers.queue_sort_key) == [
        "requirements-research",
        "deploy",
        "aa",
        "zz",
    ]
