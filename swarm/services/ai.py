"""AI text service used by agents and the task enrichment pipeline."""
from __future__ import annotations

import abc
import asyncio
from typing import Any, Dict, List, Optional, Sequence

import openai

from swarm.config import AIConfig, AzureOpenAIConfig
from swarm.core.errors import ExternalServiceError
from swarm.observability.logging import get_logger

logger = get_logger(__name__)

Conversation = Sequence[Dict[str, str]]


def user_turn(content: str) -> List[Dict[str, str]]:
    return [{"role": "user", "content": content}]


class AITextService(abc.ABC):
    """Chat completion contract; every failure surfaces as ExternalServiceError."""

    @abc.abstractmethod
    async def chat(self, system_prompt: str, conversation: Conversation) -> str:
        """Return the assistant reply for ``conversation``."""


class UnavailableAIService(AITextService):
    """Stand-in used when no AI backend is configured."""

    async def chat(self, system_prompt: str, conversation: Conversation) -> str:
        raise ExternalServiceError("No AI backend configured")


class OpenAIChatService(AITextService):
    """OpenAI-compatible chat client with concurrency limiting and per-call timeouts."""

    def __init__(self, config: AIConfig | AzureOpenAIConfig) -> None:
        self._config = config
        self._semaphore = asyncio.Semaphore(config.max_concurrent)
        self._client: Optional[Any] = None

    @property
    def model(self) -> str:
        if isinstance(self._config, AzureOpenAIConfig):
            return self._config.deployment_name
        return self._config.model

    async def chat(self, system_prompt: str, conversation: Conversation) -> str:
        messages = [{"role": "system", "content": system_prompt}, *conversation]
        async with self._semaphore:
            try:
                client = self._get_client()
                response = await asyncio.wait_for(
                    client.chat.completions.create(model=self.model, messages=messages),
                    timeout=self._config.timeout,
                )
            except asyncio.TimeoutError as exc:
                logger.warning("ai_call_timeout", model=self.model, timeout=self._config.timeout)
                raise ExternalServiceError(
                    f"AI call timed out after {self._config.timeout}s"
                ) from exc
            except openai.OpenAIError as exc:
                logger.warning("ai_call_failed", model=self.model, error=str(exc))
                raise ExternalServiceError(f"AI call failed: {exc}") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ExternalServiceError("AI backend returned an empty reply")
        return content

    def _get_client(self) -> Any:
        """Lazy initialization of the underlying client."""
        if self._client is None:
            config = self._config
            if isinstance(config, AzureOpenAIConfig):
                self._client = openai.AsyncAzureOpenAI(
                    api_key=config.api_key,
                    api_version=config.api_version,
                    azure_endpoint=config.endpoint,
                )
            else:
                self._client = openai.AsyncOpenAI(api_key=config.api_key, base_url=config.base_url)
        return self._client


def build_ai_service(
    ai: Optional[AIConfig], azure_openai: Optional[AzureOpenAIConfig]
) -> AITextService:
    """Pick the configured backend; Azure wins when both are present."""
    if azure_openai is not None:
        return OpenAIChatService(azure_openai)
    if ai is not None:
        return OpenAIChatService(ai)
    logger.warning("ai_backend_missing", detail="enrichment will use fallbacks")
    return UnavailableAIService()
