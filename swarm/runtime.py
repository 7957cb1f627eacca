"""Application runtime composition."""
from __future__ import annotations

import asyncio
from typing import Dict, Optional

from swarm.agents.base import Agent
from swarm.agents.catalog import create_agent, default_agents
from swarm.config import Config
from swarm.orchestration.registry import AgentRegistry
from swarm.orchestration.transfer import TransferService
from swarm.observability.logging import get_logger
from swarm.services.ai import AITextService, build_ai_service
from swarm.tasks.enrichment import TaskEnricher
from swarm.tasks.intake import TaskIntake
from swarm.tasks.processor import TaskProcessor
from swarm.tasks.projects import ProjectCatalog
from swarm.tasks.store import InMemoryTaskStore, JsonFileTaskStore, TaskStore

logger = get_logger(__name__)

DEFAULT_AGENT = "greeter"


class Runtime:
    """Owns every long-lived component and the per-agent task processors."""

    def __init__(
        self,
        *,
        config: Config,
        ai: AITextService,
        store: TaskStore,
        registry: Optional[AgentRegistry] = None,
    ) -> None:
        self.config = config
        self.ai = ai
        self.store = store
        self.registry = registry or AgentRegistry()
        self.transfer = TransferService(self.registry)
        self.enricher = TaskEnricher(
            ai,
            ProjectCatalog(
                config.projects,
                default_project=config.default_project,
                min_confidence=config.project_confidence,
            ),
        )
        self.intake = TaskIntake(
            registry=self.registry,
            enricher=self.enricher,
            store=store,
            storage_timeout=config.storage_timeout,
        )
        self.processors: Dict[str, TaskProcessor] = {}
        self._started = False

    def register(self, agent: Agent) -> Agent:
        """Register ``agent`` and give it a task processor."""
        self.registry.register(agent)
        name = agent.get_config().name
        if name not in self.processors:
            self.processors[name] = TaskProcessor(
                name,
                registry=self.registry,
                store=self.store,
                check_interval=self.config.check_interval,
                storage_timeout=self.config.storage_timeout,
                task_timeout=self.config.task_timeout,
            )
        return agent

    async def add_agent(self, agent: Agent) -> Agent:
        """Register ``agent`` and start its processor if the runtime is running."""
        self.register(agent)
        if self._started:
            await self.processors[agent.get_config().name].start()
        return agent

    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        if self.registry.current_agent is None and self.registry.exists(DEFAULT_AGENT):
            await self.registry.set_current_agent(DEFAULT_AGENT)
        for processor in self.processors.values():
            await processor.start()
        logger.info("runtime_started", agents=self.registry.list_agents())

    async def stop(self) -> None:
        if not self._started:
            return
        self._started = False
        await asyncio.gather(
            *(processor.stop() for processor in self.processors.values()),
            return_exceptions=True,
        )
        logger.info("runtime_stopped")


def build_store(config: Config) -> TaskStore:
    if config.task_store_path:
        return JsonFileTaskStore(config.task_store_path)
    return InMemoryTaskStore()


def build_runtime(
    config: Config,
    *,
    ai: Optional[AITextService] = None,
    store: Optional[TaskStore] = None,
) -> Runtime:
    """Create a runtime with the default agents registered."""
    ai = ai or build_ai_service(config.ai, config.azure_openai)
    runtime = Runtime(config=config, ai=ai, store=store or build_store(config))
    for descriptor in default_agents(config):
        runtime.register(create_agent(descriptor, ai=ai, config=config))
    return runtime
