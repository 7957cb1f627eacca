"""Default agent descriptors and the factory that instantiates them."""
from __future__ import annotations

from typing import List

from swarm.agents.base import Agent
from swarm.agents.browser import BrowserAgent
from swarm.agents.git import GitAssistantAgent
from swarm.agents.greeter import GreeterAgent
from swarm.agents.haiku import HaikuAgent
from swarm.agents.user import UserAgent
from swarm.config import Config
from swarm.core.models import AgentDescriptor
from swarm.services.ai import AITextService


def default_agents(config: Config) -> List[AgentDescriptor]:
    agents = [
        AgentDescriptor(
            name="greeter",
            public_description="Agent that greets the user.",
            instructions="Greet users, make them feel welcome and point them at a specialist.",
            downstream_agents=["haiku"],
            personality={
                "style": "mad_scientist_receptionist",
                "traits": ["enthusiastic", "theatrical", "helpful"],
            },
        ),
        AgentDescriptor(
            name="haiku",
            public_description="Agent that creates haikus.",
            instructions="Create haikus based on user input.",
            downstream_agents=["greeter"],
            personality={"style": "poetic_algorithm_engineer", "traits": ["poetic", "zen_like"]},
        ),
        AgentDescriptor(
            name="git",
            public_description="Agent that helps with git operations.",
            instructions="Help users with git operations like commit, branch, merge etc.",
            downstream_agents=["greeter"],
        ),
        AgentDescriptor(
            name="user",
            public_description="Stands in for the human operator.",
            instructions="Acknowledge messages addressed to the user.",
            downstream_agents=["greeter"],
        ),
    ]
    if config.browser_command:
        agents.append(
            AgentDescriptor(
                name="browser",
                public_description="Agent that controls browser automation.",
                instructions="Help users with browser automation tasks.",
                downstream_agents=["greeter"],
            )
        )
    return agents


def command_timeout(config: Config) -> float:
    """Subprocess timeout for agents, kept below the per-task timeout."""
    return min(config.command_timeout, config.task_timeout * 0.9)


def create_agent(descriptor: AgentDescriptor, *, ai: AITextService, config: Config) -> Agent:
    """Instantiate the agent implementation registered for ``descriptor.name``."""
    name = descriptor.name
    if name == "greeter":
        return GreeterAgent(descriptor)
    if name == "haiku":
        return HaikuAgent(descriptor, ai)
    if name == "git":
        return GitAssistantAgent(
            descriptor, ai, workdir=config.git_workdir, timeout=command_timeout(config)
        )
    if name == "browser":
        return BrowserAgent(descriptor, config.browser_command, timeout=command_timeout(config))
    if name == "user":
        return UserAgent(descriptor)
    raise KeyError(f"No agent implementation registered for '{name}'")
