"""Browser automation agent backed by an external driver process."""
from __future__ import annotations

import asyncio
from typing import Sequence, Tuple

from swarm.agents.base import Agent
from swarm.agents.process import run_command
from swarm.core.errors import ExternalServiceError
from swarm.core.models import AgentDescriptor, Message


class BrowserAgent(Agent):
    """Forwards each instruction to ``driver_command`` and relays its output.

    The driver receives the instruction as its last argument; a non-zero exit
    status is reported as an ExternalServiceError.
    """

    def __init__(
        self,
        descriptor: AgentDescriptor,
        driver_command: Sequence[str],
        timeout: float = 120.0,
    ) -> None:
        if not driver_command:
            raise ValueError("BrowserAgent requires a driver command")
        super().__init__(descriptor)
        self._command: Tuple[str, ...] = tuple(driver_command)
        self._timeout = timeout

    async def handle_message(self, message: Message) -> Message:
        try:
            returncode, stdout, stderr = await run_command(
                *self._command, message.content, timeout=self._timeout
            )
        except OSError as exc:
            raise ExternalServiceError(f"Unable to start browser driver: {exc}") from exc
        except asyncio.TimeoutError as exc:
            raise ExternalServiceError(
                f"Browser driver timed out after {self._timeout}s"
            ) from exc

        if returncode != 0:
            raise ExternalServiceError(f"Browser driver failed: {stderr}")
        return self.reply(stdout)
