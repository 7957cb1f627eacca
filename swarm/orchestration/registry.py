"""Name-keyed agent registry with a single current-agent cursor."""
from __future__ import annotations

import asyncio
from typing import Dict, Iterable, List, Optional

from swarm.agents.base import Agent
from swarm.core.errors import AgentNotFoundError
from swarm.observability.logging import get_logger

logger = get_logger(__name__)


class AgentRegistry:
    """Resolve agents by name and track which one is talking to the user.

    Registering a name that already exists replaces the previous agent.
    Lookups are plain dictionary reads; only the current-agent cursor is
    written under a lock.
    """

    def __init__(self) -> None:
        self._agents: Dict[str, Agent] = {}
        self._current: Optional[str] = None
        self._cursor_lock = asyncio.Lock()

    def register(self, agent: Agent) -> Agent:
        name = agent.get_config().name
        previous = self._agents.get(name)
        if previous is not None and previous is not agent:
            logger.warning("agent_replaced", agent=name)
        self._agents[name] = agent
        logger.info("agent_registered", agent=name)
        return agent

    def get(self, name: str) -> Optional[Agent]:
        return self._agents.get(name)

    def exists(self, name: str) -> bool:
        return name in self._agents

    def list_agents(self) -> List[str]:
        return list(self._agents)

    def agents(self) -> Iterable[Agent]:
        return list(self._agents.values())

    @property
    def current_agent(self) -> Optional[str]:
        return self._current

    async def set_current_agent(self, name: str) -> None:
        async with self._cursor_lock:
            if name not in self._agents:
                raise AgentNotFoundError(name)
            self._current = name
        logger.info("current_agent_changed", agent=name)
