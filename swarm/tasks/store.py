"""Durable task storage."""
from __future__ import annotations

import abc
import asyncio
import copy
import json
import threading
from pathlib import Path
from typing import Dict, List, Optional

from swarm.core.errors import DuplicateKeyError, InvalidStatusTransition, StorageError
from swarm.core.models import TaskStatus, TodoTask
from swarm.observability.logging import get_logger

logger = get_logger(__name__)


class TaskStore(abc.ABC):
    """Storage contract for tasks.

    ``description`` is the natural key: inserting a second task with the same
    description raises DuplicateKeyError. Tasks are never deleted.
    """

    @abc.abstractmethod
    async def insert(self, task: TodoTask) -> None:
        """Persist a new task."""

    @abc.abstractmethod
    async def find_all(self) -> List[TodoTask]:
        """Return every task in insertion order."""

    @abc.abstractmethod
    async def update_status(
        self,
        task_id: str,
        status: TaskStatus,
        timestamp: int,
        error: Optional[str] = None,
    ) -> int:
        """Advance a task's status and return the number of modified tasks."""

    async def find_pending(self, target_agent: str) -> List[TodoTask]:
        """Pending tasks addressed to ``target_agent``, oldest first."""
        tasks = [
            task
            for task in await self.find_all()
            if task.target_agent == target_agent and task.status is TaskStatus.PENDING
        ]
        # sorted() is stable, so equal timestamps keep insertion order.
        return sorted(tasks, key=lambda task: task.created_at)

    async def get(self, task_id: str) -> Optional[TodoTask]:
        for task in await self.find_all():
            if task.id == task_id:
                return task
        return None


class InMemoryTaskStore(TaskStore):
    """Process-local store with a unique index on the description."""

    def __init__(self) -> None:
        self._tasks: Dict[str, TodoTask] = {}
        self._by_description: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    async def insert(self, task: TodoTask) -> None:
        async with self._lock:
            if task.description in self._by_description:
                raise DuplicateKeyError(task.description)
            if task.id in self._tasks:
                raise StorageError(f"Task id {task.id} already stored")
            self._tasks[task.id] = copy.deepcopy(task)
            self._by_description[task.description] = task.id
            try:
                await self._flush()
            except BaseException:
                # Also covers cancellation by a caller's timeout.
                del self._tasks[task.id]
                del self._by_description[task.description]
                raise

    async def find_all(self) -> List[TodoTask]:
        async with self._lock:
            return [copy.deepcopy(task) for task in self._tasks.values()]

    async def update_status(
        self,
        task_id: str,
        status: TaskStatus,
        timestamp: int,
        error: Optional[str] = None,
    ) -> int:
        async with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                return 0
            if not task.status.can_advance_to(status):
                raise InvalidStatusTransition(
                    f"Task {task_id} cannot move from {task.status.value} to {status.value}"
                )
            updated = copy.deepcopy(task)
            updated.status = status
            if status.is_terminal:
                updated.completed_at = timestamp
            if error is not None:
                updated.error = error
            self._tasks[task_id] = updated
            try:
                await self._flush()
            except BaseException:
                self._tasks[task_id] = task
                raise
            return 1

    async def _flush(self) -> None:
        """Persist the current contents; called with the lock held.

        Callers roll their change back when a flush fails or is cancelled. The
        next successful flush rewrites durable state from memory.
        """
        return None


class JsonFileTaskStore(InMemoryTaskStore):
    """In-memory store mirrored to a JSON file after every write.

    Each flush carries a generation number. A write thread left running by a
    cancelled flush never overwrites the file with an older snapshot.
    """

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self._path = Path(path)
        self._generation = 0
        self._written = 0
        self._write_lock = threading.Lock()
        if self._path.exists():
            self._load()

    def _load(self) -> None:
        try:
            records = json.loads(self._path.read_text(encoding="utf-8"))
            tasks = [TodoTask.from_record(record) for record in records]
        except (OSError, ValueError, KeyError) as exc:
            raise StorageError(f"Unable to load tasks from {self._path}: {exc}") from exc
        for task in tasks:
            self._tasks[task.id] = task
            self._by_description[task.description] = task.id
        logger.info("task_store_loaded", path=str(self._path), tasks=len(tasks))

    async def _flush(self) -> None:
        payload = json.dumps([task.to_record() for task in self._tasks.values()], indent=2)
        self._generation += 1
        try:
            await asyncio.to_thread(self._write, payload, self._generation)
        except OSError as exc:
            raise StorageError(f"Unable to write tasks to {self._path}: {exc}") from exc

    def _write(self, payload: str, generation: int) -> None:
        with self._write_lock:
            if generation < self._written:
                return
            tmp = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp.write_text(payload, encoding="utf-8")
            tmp.replace(self._path)
            self._written = generation
