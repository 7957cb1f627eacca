"""Task submission: enrich, build and persist new tasks."""
from __future__ import annotations

import asyncio
import time
import uuid
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, TypeVar

from swarm.agents.user import suggest_agent
from swarm.core.errors import (
    AgentNotFoundError,
    DuplicateKeyError,
    StorageError,
    ValidationError,
)
from swarm.core.models import TaskStatus, TodoTask
from swarm.orchestration.registry import AgentRegistry
from swarm.observability.logging import get_logger
from swarm.tasks.enrichment import TaskEnricher
from swarm.tasks.store import TaskStore

logger = get_logger(__name__)

T = TypeVar("T")

FALLBACK_AGENT = "user"


async def with_timeout(call: Awaitable[T], timeout: float, operation: str) -> T:
    """Await a store call, turning a timeout into a StorageError."""
    try:
        return await asyncio.wait_for(call, timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise StorageError(f"Task store {operation} timed out after {timeout}s") from exc


def disambiguate(description: str, timestamp: float) -> str:
    stamp = datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y%m%d_%H%M%S")
    return f"{description} ({stamp})"


class TaskIntake:
    """Accepts raw descriptions and turns them into persisted Pending tasks."""

    def __init__(
        self,
        *,
        registry: AgentRegistry,
        enricher: TaskEnricher,
        store: TaskStore,
        storage_timeout: float = 5.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._registry = registry
        self._enricher = enricher
        self._store = store
        self._storage_timeout = storage_timeout
        self._clock = clock

    async def submit(
        self,
        description: str,
        target_agent: Optional[str] = None,
        *,
        project: Optional[str] = None,
        source_agent: Optional[str] = None,
    ) -> TodoTask:
        description = description.strip()
        if not description:
            raise ValidationError("Task description must not be empty")
        if target_agent is None:
            target_agent = self._route(description)
        if not self._registry.exists(target_agent):
            raise AgentNotFoundError(target_agent)

        enriched = await self._enricher.enrich(description, project)
        now = self._clock()
        task = TodoTask(
            id=str(uuid.uuid4()),
            description=description,
            enhanced_description=enriched.description if enriched.enhanced else None,
            priority=enriched.priority,
            project=enriched.project,
            source_agent=source_agent,
            target_agent=target_agent,
            status=TaskStatus.PENDING,
            created_at=int(now),
        )
        task = await self._insert(task, now)
        logger.info(
            "task_submitted",
            task_id=task.id,
            target_agent=target_agent,
            priority=task.priority.value,
            project=task.project,
        )
        return task

    def _route(self, description: str) -> str:
        """Pick a target for a task submitted without one; people get the rest."""
        target = suggest_agent(description, self._registry.list_agents()) or FALLBACK_AGENT
        logger.info("task_routed", target_agent=target)
        return target

    async def _insert(self, task: TodoTask, now: float) -> TodoTask:
        """Insert ``task``, retrying once under a timestamped description on collision."""
        try:
            await with_timeout(self._store.insert(task), self._storage_timeout, "insert")
            return task
        except DuplicateKeyError:
            logger.info("task_duplicate_description", description=task.description)

        task.description = disambiguate(task.description, now)
        try:
            await with_timeout(self._store.insert(task), self._storage_timeout, "insert")
        except DuplicateKeyError as exc:
            logger.error("task_duplicate_after_retry", description=task.description)
            raise StorageError(
                f"Failed to insert task even with timestamp: {task.description}"
            ) from exc
        return task
