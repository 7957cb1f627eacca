"""Agent standing in for a human recipient, plus keyword routing for tasks."""
from __future__ import annotations

import re
from typing import Iterable, Optional, Tuple

from swarm.agents.base import Agent
from swarm.core.models import Message

ROUTING_RULES: Tuple[Tuple[str, re.Pattern[str]], ...] = (
    ("git", re.compile(r"\b(git|commit\w*|branch\w*|repo\w*|merge\w*)\b", re.I)),
    ("haiku", re.compile(r"\b(haikus?|poems?|poetry|verse)\b", re.I)),
    ("browser", re.compile(r"\b(browser|web\w*|page\w*|site\w*|url)\b", re.I)),
    ("greeter", re.compile(r"\b(hello|hi|greet\w*|welcome)\b", re.I)),
)


def suggest_agent(description: str, available: Iterable[str]) -> Optional[str]:
    """First agent in ``available`` whose keywords appear in ``description``."""
    names = set(available)
    for name, pattern in ROUTING_RULES:
        if name in names and pattern.search(description):
            return name
    return None


class UserAgent(Agent):
    """Acknowledges every message; tasks addressed to a person end up here."""

    async def handle_message(self, message: Message) -> Message:
        return self.reply(f"User received: {message.content}")
