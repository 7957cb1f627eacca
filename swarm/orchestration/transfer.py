"""Validated handoff of conversations between registered agents."""
from __future__ import annotations

from typing import Optional

from swarm.agents.base import Agent
from swarm.core.errors import AgentNotFoundError
from swarm.core.models import Message
from swarm.orchestration.registry import AgentRegistry
from swarm.observability.logging import get_logger

logger = get_logger(__name__)


class TransferService:
    """Route messages to the current agent and move conversations between agents."""

    def __init__(self, registry: AgentRegistry) -> None:
        self._registry = registry

    def get_agent(self, name: str) -> Agent:
        agent = self._registry.get(name)
        if agent is None:
            raise AgentNotFoundError(name)
        return agent

    async def transfer(self, source: str, target: str, message: Message) -> Message:
        """Ask ``source`` to hand ``message`` over to ``target``.

        Both names are resolved before either agent is touched. The current
        agent cursor is left alone; callers move it with ``set_current_agent``.
        """
        source_agent = self.get_agent(source)
        self.get_agent(target)
        result = await source_agent.transfer_to(target, message)
        logger.info("transfer_completed", source=source, target=target)
        return result

    async def process_message(self, message: Message) -> Message:
        name = self.current_agent_name()
        if name is None:
            raise AgentNotFoundError("<current>")
        return await self.get_agent(name).process_message(message)

    def current_agent_name(self) -> Optional[str]:
        return self._registry.current_agent

    async def set_current_agent(self, name: str) -> None:
        await self._registry.set_current_agent(name)
