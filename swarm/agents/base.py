"""Base agent definition implementing the capability interface."""
from __future__ import annotations

import abc
import asyncio
from typing import Dict, Optional

from swarm.core.errors import InvalidTransferTarget, ToolError
from swarm.core.models import AgentDescriptor, Message, MessageMetadata, State, Tool
from swarm.core.state_machine import AgentStateManager
from swarm.observability.logging import get_logger

logger = get_logger(__name__)


class Agent(abc.ABC):
    """Abstract agent encapsulating its descriptor, state cursor and message handling.

    Public coroutines share one lock, so concurrent callers never interleave
    inside the same agent. Subclasses implement ``handle_message`` and may
    override the ``on_transfer`` and ``run_tool`` hooks, which run under that
    lock.
    """

    def __init__(self, descriptor: AgentDescriptor) -> None:
        self.descriptor = descriptor
        self.state_manager = AgentStateManager(descriptor.state_machine)
        self._lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return self.descriptor.name

    async def process_message(self, message: Message) -> Message:
        async with self._lock:
            return await self.handle_message(message)

    async def transfer_to(self, target_name: str, message: Message) -> Message:
        """Hand ``message`` to ``target_name`` if it is a declared downstream agent."""
        if target_name not in self.descriptor.downstream_agents:
            raise InvalidTransferTarget(self.name, target_name)
        async with self._lock:
            await self.on_transfer(target_name, message)
            logger.info("agent_transfer", source=self.name, target=target_name)
            return Message(
                content=message.content,
                role=message.role,
                metadata=self.metadata(transfer_target=target_name),
            )

    async def call_tool(self, tool: Tool, params: Dict[str, str]) -> str:
        declared = {t.name: t for t in self.descriptor.tools}
        if tool.name not in declared:
            raise ToolError(f"Agent '{self.name}' has no tool '{tool.name}'")
        missing = [
            key for key in declared[tool.name].parameters if not str(params.get(key, "")).strip()
        ]
        if missing:
            raise ToolError(f"Tool '{tool.name}' missing parameters: {', '.join(sorted(missing))}")
        async with self._lock:
            return await self.run_tool(declared[tool.name], params)

    def get_current_state(self) -> Optional[State]:
        return self.state_manager.get_current_state()

    def get_config(self) -> AgentDescriptor:
        return self.descriptor.snapshot()

    def metadata(self, *, transfer_target: Optional[str] = None) -> MessageMetadata:
        return MessageMetadata(
            agent=self.name,
            state=self.state_manager.current_state_name,
            transfer_target=transfer_target,
        )

    def reply(self, content: str) -> Message:
        """Build an assistant response tagged with this agent's current state."""
        return Message(content=content, metadata=self.metadata())

    @abc.abstractmethod
    async def handle_message(self, message: Message) -> Message:
        """Produce the response to ``message``; may advance the state machine."""

    async def on_transfer(self, target_name: str, message: Message) -> None:
        """Hook executed once a transfer to ``target_name`` has been validated."""
        return None

    async def run_tool(self, tool: Tool, params: Dict[str, str]) -> str:
        """Execute a validated tool call."""
        return f"Called tool {tool.name} with params {params}"
