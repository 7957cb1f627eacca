"""Tests for the per-agent task processor."""
from __future__ import annotations

import asyncio
from typing import List, Optional, Tuple

import anyio
import pytest

from swarm.agents.base import Agent
from swarm.core.models import AgentDescriptor, Message, TaskStatus, TodoTask
from swarm.orchestration.registry import AgentRegistry
from swarm.tasks.processor import TaskProcessor
from swarm.tasks.store import InMemoryTaskStore, JsonFileTaskStore


class RecordingAgent(Agent):
    def __init__(self, name: str = "worker", fail_on: str = "", delay: float = 0.0) -> None:
        super().__init__(AgentDescriptor(name=name))
        self.seen: List[str] = []
        self._fail_on = fail_on
        self._delay = delay

    async def handle_message(self, message: Message) -> Message:
        self.seen.append(message.content)
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._fail_on and self._fail_on in message.content:
            raise RuntimeError(f"cannot handle {message.content}")
        return self.reply(f"done: {message.content}")


class RecordingStore(InMemoryTaskStore):
    def __init__(self) -> None:
        super().__init__()
        self.updates: List[Tuple[str, TaskStatus]] = []

    async def update_status(
        self, task_id: str, status: TaskStatus, timestamp: int, error: Optional[str] = None
    ) -> int:
        self.updates.append((task_id, status))
        return await super().update_status(task_id, status, timestamp, error)


def _processor(agent: Agent, store: InMemoryTaskStore, **kwargs) -> TaskProcessor:
    registry = AgentRegistry()
    registry.register(agent)
    return TaskProcessor(agent.name, registry=registry, store=store, clock=lambda: 500, **kwargs)


async def _seed(store: InMemoryTaskStore, *tasks: TodoTask) -> None:
    for task in tasks:
        await store.insert(task)


@pytest.mark.anyio
async def test_tasks_run_oldest_first_with_enhanced_text() -> None:
    store = InMemoryTaskStore()
    agent = RecordingAgent()
    await _seed(
        store,
        TodoTask(id="b", description="second", target_agent="worker", created_at=20),
        TodoTask(
            id="a",
            description="first",
            enhanced_description="First, but clearer",
            target_agent="worker",
            created_at=10,
        ),
        TodoTask(id="c", description="elsewhere", target_agent="haiku", created_at=5),
    )

    assert await _processor(agent, store).run_once() == 2
    assert agent.seen == ["First, but clearer", "second"]
    statuses = {task.id: task.status for task in await store.find_all()}
    assert statuses == {
        "a": TaskStatus.COMPLETED,
        "b": TaskStatus.COMPLETED,
        "c": TaskStatus.PENDING,
    }


@pytest.mark.anyio
async def test_failed_task_does_not_stop_the_queue() -> None:
    store = RecordingStore()
    agent = RecordingAgent(fail_on="explode")
    await _seed(
        store,
        TodoTask(id="1", description="explode now", target_agent="worker", created_at=1),
        TodoTask(id="2", description="calm task", target_agent="worker", created_at=2),
    )
    processor = _processor(agent, store)

    await processor.run_once()

    assert store.updates == [
        ("1", TaskStatus.IN_PROGRESS),
        ("1", TaskStatus.FAILED),
        ("2", TaskStatus.IN_PROGRESS),
        ("2", TaskStatus.COMPLETED),
    ]
    failed = await store.get("1")
    assert failed.error == "cannot handle explode now"
    assert failed.completed_at == 500
    assert (processor.processed_count, processor.failed_count) == (1, 1)
    assert await processor.run_once() == 0


@pytest.mark.anyio
async def test_slow_task_times_out() -> None:
    store = InMemoryTaskStore()
    await _seed(store, TodoTask(id="1", description="slow", target_agent="worker"))

    await _processor(RecordingAgent(delay=1.0), store, task_timeout=0.01).run_once()

    task = await store.get("1")
    assert task.status is TaskStatus.FAILED
    assert task.error.startswith("Timed out")


@pytest.mark.anyio
async def test_missing_agent_skips_cycle() -> None:
    store = InMemoryTaskStore()
    await _seed(store, TodoTask(id="1", description="orphan", target_agent="ghost"))
    processor = TaskProcessor("ghost", registry=AgentRegistry(), store=store)

    assert await processor.run_once() == 0
    assert (await store.get("1")).status is TaskStatus.PENDING


@pytest.mark.anyio
async def test_background_loop_picks_up_new_tasks() -> None:
    store = InMemoryTaskStore()
    processor = _processor(RecordingAgent(), store, check_interval=0.01)

    await processor.start()
    assert processor.running
    await _seed(store, TodoTask(id="1", description="later", target_agent="worker"))
    with anyio.fail_after(2):
        while (await store.get("1")).status is not TaskStatus.COMPLETED:
            await asyncio.sleep(0.01)
    await processor.stop()

    assert not processor.running
    assert processor.processed_count == 1


class FlakyJsonStore(JsonFileTaskStore):
    def __init__(self, path) -> None:
        super().__init__(path)
        self.failures = 0

    def _write(self, payload: str, generation: int) -> None:
        if self.failures:
            self.failures -= 1
            raise OSError("disk full")
        super()._write(payload, generation)


@pytest.mark.anyio
async def test_task_retried_after_status_write_failure(tmp_path) -> None:
    path = tmp_path / "tasks.json"
    store = FlakyJsonStore(path)
    agent = RecordingAgent()
    await _seed(store, TodoTask(id="1", description="persist me", target_agent="worker"))
    processor = _processor(agent, store)

    store.failures = 1
    await processor.run_once()
    assert agent.seen == []
    assert (await store.get("1")).status is TaskStatus.PENDING

    await processor.run_once()
    assert agent.seen == ["persist me"]
    assert (await JsonFileTaskStore(path).get("1")).status is TaskStatus.COMPLETED
