"""Tests for agent registration and the current-agent cursor."""
from __future__ import annotations

import pytest

from swarm.agents.greeter import GreeterAgent
from swarm.agents.user import UserAgent
from swarm.core.errors import AgentNotFoundError
from swarm.core.models import AgentDescriptor
from swarm.orchestration.registry import AgentRegistry


def test_get_returns_registered_instance() -> None:
    registry = AgentRegistry()
    greeter = registry.register(GreeterAgent(AgentDescriptor(name="greeter")))
    user = registry.register(UserAgent(AgentDescriptor(name="user")))

    assert registry.get("greeter") is greeter
    assert registry.get("user") is user
    assert registry.exists("user")
    assert sorted(registry.list_agents()) == ["greeter", "user"]


def test_unknown_name_is_absent() -> None:
    registry = AgentRegistry()
    registry.register(UserAgent(AgentDescriptor(name="user")))
    assert registry.get("nonexistent") is None
    assert not registry.exists("nonexistent")


def test_reregistration_overwrites() -> None:
    registry = AgentRegistry()
    first = registry.register(UserAgent(AgentDescriptor(name="user")))
    second = registry.register(UserAgent(AgentDescriptor(name="user")))
    assert first is not second
    assert registry.get("user") is second
    assert registry.list_agents() == ["user"]


@pytest.mark.anyio
async def test_current_agent_cursor() -> None:
    registry = AgentRegistry()
    registry.register(GreeterAgent(AgentDescriptor(name="greeter")))
    assert registry.current_agent is None

    await registry.set_current_agent("greeter")
    assert registry.current_agent == "greeter"

    with pytest.raises(AgentNotFoundError):
        await registry.set_current_agent("ghost")
    assert registry.current_agent == "greeter"
