"""HTTP API exposing agents, routing and transfers."""
from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from swarm.agents.base import Agent
from swarm.core.models import Message
from swarm.runtime import Runtime
from swarm.api.dependencies import get_runtime

router = APIRouter(prefix="/agents", tags=["agents"])


class AgentResponse(BaseModel):
    name: str
    public_description: str
    instructions: str
    tools: List[str]
    downstream_agents: List[str]
    current_state: Optional[str]
    is_current: bool

    @classmethod
    def from_agent(cls, agent: Agent, current: Optional[str]) -> "AgentResponse":
        config = agent.get_config()
        state = agent.get_current_state()
        return cls(
            name=config.name,
            public_description=config.public_description,
            instructions=config.instructions,
            tools=[tool.name for tool in config.tools],
            downstream_agents=list(config.downstream_agents),
            current_state=state.name if state else None,
            is_current=config.name == current,
        )


class MessageRequest(BaseModel):
    content: str = Field(..., description="Message text for the agent")


class TransferRequest(BaseModel):
    target: str = Field(..., description="Name of the downstream agent")
    content: str = Field(default="", description="Message handed over with the transfer")
    make_current: bool = Field(default=False, description="Also route future chat to the target")


class CurrentAgentRequest(BaseModel):
    name: str


class MessageResponse(BaseModel):
    content: str
    role: str
    timestamp: int
    agent: Optional[str] = None
    state: Optional[str] = None
    transfer_target: Optional[str] = None
    context: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_message(cls, message: Message) -> "MessageResponse":
        meta = message.metadata
        return cls(
            content=message.content,
            role=message.role,
            timestamp=message.timestamp,
            agent=meta.agent if meta else None,
            state=meta.state if meta else None,
            transfer_target=meta.transfer_target if meta else None,
            context=dict(meta.context) if meta else {},
        )


@router.get("", response_model=List[AgentResponse])
async def list_agents(runtime: Runtime = Depends(get_runtime)) -> List[AgentResponse]:
    current = runtime.registry.current_agent
    return [AgentResponse.from_agent(agent, current) for agent in runtime.registry.agents()]


@router.get("/current", response_model=AgentResponse)
async def get_current_agent(runtime: Runtime = Depends(get_runtime)) -> AgentResponse:
    current = runtime.registry.current_agent
    agent = runtime.registry.get(current) if current else None
    if agent is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No current agent set")
    return AgentResponse.from_agent(agent, current)


@router.put("/current", response_model=AgentResponse)
async def set_current_agent(
    request: CurrentAgentRequest,
    runtime: Runtime = Depends(get_runtime),
) -> AgentResponse:
    await runtime.transfer.set_current_agent(request.name)
    return AgentResponse.from_agent(runtime.transfer.get_agent(request.name), request.name)


@router.get("/{name}", response_model=AgentResponse)
async def get_agent(name: str, runtime: Runtime = Depends(get_runtime)) -> AgentResponse:
    agent = runtime.transfer.get_agent(name)
    return AgentResponse.from_agent(agent, runtime.registry.current_agent)


@router.post("/{name}/messages", response_model=MessageResponse)
async def send_message(
    name: str,
    request: MessageRequest,
    runtime: Runtime = Depends(get_runtime),
) -> MessageResponse:
    agent = runtime.transfer.get_agent(name)
    reply = await agent.process_message(Message.from_user(request.content))
    return MessageResponse.from_message(reply)


@router.post("/{name}/transfer", response_model=MessageResponse)
async def transfer(
    name: str,
    request: TransferRequest,
    runtime: Runtime = Depends(get_runtime),
) -> MessageResponse:
    reply = await runtime.transfer.transfer(name, request.target, Message.from_user(request.content))
    if request.make_current:
        await runtime.transfer.set_current_agent(request.target)
    return MessageResponse.from_message(reply)
