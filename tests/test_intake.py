"""Tests for task submission and persistence retries."""
from __future__ import annotations

import asyncio
import json
import time
from datetime import datetime, timezone

import pytest

from swarm.agents.user import UserAgent
from swarm.core.errors import AgentNotFoundError, DuplicateKeyError, StorageError, ValidationError
from swarm.core.models import AgentDescriptor, TaskPriority, TaskStatus
from swarm.orchestration.registry import AgentRegistry
from swarm.tasks.enrichment import TaskEnricher
from swarm.tasks.intake import TaskIntake
from swarm.tasks.projects import ProjectCatalog
from swarm.tasks.store import InMemoryTaskStore, JsonFileTaskStore

FIXED_NOW = datetime(2024, 5, 17, 9, 30, 15, tzinfo=timezone.utc).timestamp()


def _intake(ai, store=None, storage_timeout: float = 5.0) -> TaskIntake:
    registry = AgentRegistry()
    registry.register(UserAgent(AgentDescriptor(name="git")))
    registry.register(UserAgent(AgentDescriptor(name="haiku")))
    registry.register(UserAgent(AgentDescriptor(name="user")))
    return TaskIntake(
        registry=registry,
        enricher=TaskEnricher(ai, ProjectCatalog({}, default_project="madness_interactive")),
        store=store or InMemoryTaskStore(),
        storage_timeout=storage_timeout,
        clock=lambda: FIXED_NOW,
    )


@pytest.mark.anyio
async def test_security_task_is_high_priority_and_pending(scripted_ai) -> None:
    ai = scripted_ai(
        enhance=json.dumps(
            {"description": "Patch the login form against credential stuffing", "priority": "medium"}
        )
    )
    store = InMemoryTaskStore()
    task = await _intake(ai, store).submit(
        "fix critical security vulnerability in login", "git", source_agent="user"
    )

    assert task.priority is TaskPriority.HIGH
    assert task.status is TaskStatus.PENDING
    assert task.target_agent == "git"
    assert task.source_agent == "user"
    assert task.enhanced_description == "Patch the login form against credential stuffing"
    assert task.created_at == int(FIXED_NOW)
    assert (await store.find_all())[0] == task


@pytest.mark.anyio
async def test_intake_survives_ai_outage(down_ai) -> None:
    task = await _intake(down_ai).submit("write a haiku about queues", "haiku")
    assert task.priority is TaskPriority.MEDIUM
    assert task.project == "madness_interactive"
    assert task.enhanced_description is None
    assert task.work_text == "write a haiku about queues"


@pytest.mark.anyio
async def test_duplicate_description_retries_once(down_ai) -> None:
    intake = _intake(down_ai)

    first = await intake.submit("clean the cache", "git")
    second = await intake.submit("clean the cache", "git")
    assert first.description == "clean the cache"
    assert second.description == "clean the cache (20240517_093015)"
    assert second.id != first.id

    with pytest.raises(StorageError) as excinfo:
        await intake.submit("clean the cache", "git")
    assert not isinstance(excinfo.value, DuplicateKeyError)


@pytest.mark.anyio
async def test_unknown_target_is_rejected_before_storage(down_ai) -> None:
    store = InMemoryTaskStore()
    with pytest.raises(AgentNotFoundError):
        await _intake(down_ai, store).submit("do something", "ghost")
    assert await store.find_all() == []


@pytest.mark.anyio
async def test_blank_description_is_rejected(down_ai) -> None:
    with pytest.raises(ValidationError):
        await _intake(down_ai).submit("   ", "git")


class SlowStore(InMemoryTaskStore):
    async def insert(self, task) -> None:
        await asyncio.sleep(1)
        await super().insert(task)


@pytest.mark.anyio
async def test_store_timeout_is_a_storage_error(down_ai) -> None:
    with pytest.raises(StorageError, match="timed out"):
        await _intake(down_ai, SlowStore(), storage_timeout=0.01).submit("slow", "git")


class SlowJsonStore(JsonFileTaskStore):
    delay = 0.2

    def _write(self, payload: str, generation: int) -> None:
        time.sleep(self.delay)
        super()._write(payload, generation)


@pytest.mark.anyio
async def test_timed_out_insert_is_not_kept(down_ai, tmp_path) -> None:
    path = tmp_path / "tasks.json"
    store = SlowJsonStore(path)
    with pytest.raises(StorageError, match="timed out"):
        await _intake(down_ai, store, storage_timeout=0.05).submit("fix login", "git")
    assert await store.find_all() == []

    await asyncio.sleep(0.3)
    store.delay = 0
    retried = await _intake(down_ai, store).submit("fix login", "git")
    assert retried.description == "fix login"
    assert [task.id for task in await JsonFileTaskStore(path).find_all()] == [retried.id]


@pytest.mark.anyio
@pytest.mark.parametrize(
    "description,expected",
    [
        ("commit the release branch", "git"),
        ("write a poem about queues", "haiku"),
        ("open the web dashboard", "user"),
        ("call the accountant", "user"),
    ],
)
async def test_missing_target_is_routed_by_keywords(down_ai, description, expected) -> None:
    task = await _intake(down_ai).submit(description)
    assert task.target_agent == expected
