"""Shared test fixtures."""
from __future__ import annotations

from typing import Dict, List, Sequence, Tuple, Union

import pytest

from swarm.core.errors import ExternalServiceError
from swarm.services.ai import AITextService
from swarm.tasks.enrichment import CLEAN_PROMPT, ENHANCE_PROMPT

Reply = Union[str, Exception]


class ScriptedAI(AITextService):
    """AI double answering by prompt kind: enhance, clean, classify or other.

    Each kind takes a single reply (reused) or a list consumed in order.
    A missing kind behaves like an unreachable backend.
    """

    def __init__(self, **replies: Union[Reply, Sequence[Reply]]) -> None:
        self._replies: Dict[str, List[Reply]] = {}
        self._sticky: Dict[str, Reply] = {}
        for kind, value in replies.items():
            if isinstance(value, (list, tuple)):
                self._replies[kind] = list(value)
            else:
                self._sticky[kind] = value
        self.calls: List[Tuple[str, str]] = []

    @staticmethod
    def kind_of(system_prompt: str) -> str:
        if system_prompt == ENHANCE_PROMPT:
            return "enhance"
        if system_prompt == CLEAN_PROMPT:
            return "clean"
        if system_prompt.startswith("You assign software tasks"):
            return "classify"
        return "other"

    async def chat(self, system_prompt, conversation) -> str:
        kind = self.kind_of(system_prompt)
        self.calls.append((kind, conversation[-1]["content"]))
        if self._replies.get(kind):
            reply = self._replies[kind].pop(0)
        elif kind in self._sticky:
            reply = self._sticky[kind]
        else:
            raise ExternalServiceError(f"no scripted reply for {kind}")
        if isinstance(reply, Exception):
            raise reply
        return reply

    def kinds(self) -> List[str]:
        return [kind for kind, _ in self.calls]


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def scripted_ai():
    return ScriptedAI


@pytest.fixture
def down_ai() -> ScriptedAI:
    return ScriptedAI()
