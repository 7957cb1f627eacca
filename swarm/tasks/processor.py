"""Background execution of Pending tasks addressed to one agent."""
from __future__ import annotations

import asyncio
import time
from typing import Callable, Optional

from swarm.core.errors import StorageError
from swarm.core.models import Message, TaskStatus, TodoTask
from swarm.orchestration.registry import AgentRegistry
from swarm.observability.logging import get_logger
from swarm.tasks.intake import with_timeout
from swarm.tasks.store import TaskStore

logger = get_logger(__name__)


class TaskProcessor:
    """Polls the store for one agent's Pending tasks and runs them in FIFO order.

    The agent is looked up in the registry on every cycle. A failing task is
    marked Failed and the loop moves on; nothing a single task does stops it.
    """

    def __init__(
        self,
        agent_name: str,
        *,
        registry: AgentRegistry,
        store: TaskStore,
        check_interval: float = 30.0,
        storage_timeout: float = 5.0,
        task_timeout: float = 300.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.agent_name = agent_name
        self._registry = registry
        self._store = store
        self._check_interval = check_interval
        self._storage_timeout = storage_timeout
        self._task_timeout = task_timeout
        self._clock = clock
        self._runner: Optional[asyncio.Task[None]] = None
        self._stop_event = asyncio.Event()
        self.processed_count = 0
        self.failed_count = 0

    @property
    def running(self) -> bool:
        return self._runner is not None and not self._runner.done()

    async def start(self) -> None:
        """Start the background loop."""
        if self._runner is not None:
            return
        self._stop_event.clear()
        self._runner = asyncio.create_task(
            self._run_safe(), name=f"task-processor-{self.agent_name}"
        )

    async def stop(self) -> None:
        """Signal the loop to stop and wait for the current cycle to finish."""
        if self._runner is None:
            return
        self._stop_event.set()
        await self._runner
        self._runner = None

    async def _run_safe(self) -> None:
        logger.info("task_processor_started", agent=self.agent_name, interval=self._check_interval)
        while not self._stop_event.is_set():
            try:
                await self.run_once()
            except Exception as exc:  # noqa: BLE001
                logger.error("task_processor_cycle_failed", agent=self.agent_name, error=str(exc))
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._check_interval)
            except asyncio.TimeoutError:
                pass
        logger.info("task_processor_stopped", agent=self.agent_name)

    async def run_once(self) -> int:
        """Run every Pending task for this agent; return how many were attempted."""
        agent = self._registry.get(self.agent_name)
        if agent is None:
            logger.warning("task_processor_agent_missing", agent=self.agent_name)
            return 0

        try:
            pending = await with_timeout(
                self._store.find_pending(self.agent_name), self._storage_timeout, "find"
            )
        except StorageError as exc:
            logger.error("task_fetch_failed", agent=self.agent_name, error=str(exc))
            return 0

        for task in pending:
            await self._process(task)
        return len(pending)

    async def _process(self, task: TodoTask) -> None:
        log = logger.bind(agent=self.agent_name, task_id=task.id)
        if not await self._mark(task, TaskStatus.IN_PROGRESS):
            return

        agent = self._registry.get(self.agent_name)
        try:
            if agent is None:
                raise LookupError(f"Agent '{self.agent_name}' is no longer registered")
            response = await asyncio.wait_for(
                agent.process_message(Message.from_user(task.work_text)),
                timeout=self._task_timeout,
            )
        except asyncio.TimeoutError:
            self.failed_count += 1
            log.warning("task_timed_out", timeout=self._task_timeout)
            await self._mark(task, TaskStatus.FAILED, f"Timed out after {self._task_timeout}s")
            return
        except Exception as exc:  # noqa: BLE001
            self.failed_count += 1
            log.warning("task_failed", error=str(exc))
            await self._mark(task, TaskStatus.FAILED, str(exc) or type(exc).__name__)
            return

        self.processed_count += 1
        log.info("task_completed", response=response.content[:200])
        await self._mark(task, TaskStatus.COMPLETED)

    async def _mark(self, task: TodoTask, status: TaskStatus, error: Optional[str] = None) -> bool:
        """Persist a status change; store failures are logged, never raised."""
        try:
            modified = await with_timeout(
                self._store.update_status(task.id, status, int(self._clock()), error),
                self._storage_timeout,
                "update",
            )
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "task_status_update_failed",
                task_id=task.id,
                status=status.value,
                error=str(exc),
            )
            return False
        if modified == 0:
            logger.warning("task_not_found", task_id=task.id)
            return False
        task.status = status
        return True
