"""Chat endpoint routing user input to the current agent."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from swarm.api.dependencies import get_runtime
from swarm.api.routes import MessageResponse
from swarm.core.models import Message
from swarm.runtime import Runtime

router = APIRouter(prefix="/chat", tags=["chat"])


class ChatRequest(BaseModel):
    message: str = Field(..., description="User message for the current agent")


@router.post("", response_model=MessageResponse)
async def chat(request: ChatRequest, runtime: Runtime = Depends(get_runtime)) -> MessageResponse:
    reply = await runtime.transfer.process_message(Message.from_user(request.message))
    return MessageResponse.from_message(reply)
