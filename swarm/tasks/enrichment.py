"""AI-assisted enrichment of raw task descriptions.

The pipeline runs three stages, each with its own fallback:

1. enhance: ask the AI for ``{"description": ..., "priority": ...}`` and
   validate the reply strictly;
2. clean: if that reply does not validate, ask the AI to coerce it into the
   same shape and validate the first JSON object found;
3. classify: pick a project from the catalog (concurrently with 1-2).

Keyword rules then pin the priority of a validated reply. No stage raises:
an unreachable or misbehaving AI backend yields the original description,
Medium priority and the default project.
"""
from __future__ import annotations

import asyncio
import json
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as SchemaError

from swarm.core.errors import ExternalServiceError
from swarm.core.models import TaskPriority
from swarm.observability.logging import get_logger
from swarm.services.ai import AITextService, user_turn
from swarm.tasks.projects import ProjectCatalog

logger = get_logger(__name__)

PRIORITY_KEYWORDS: Tuple[Tuple[TaskPriority, re.Pattern[str]], ...] = (
    (
        TaskPriority.HIGH,
        re.compile(
            r"\b(secur\w*|vulnerab\w*|crash\w*|exploit\w*"
            r"|authenticat\w*|authoriz\w*|auth[nz]?\b)",
            re.I,
        ),
    ),
    (TaskPriority.MEDIUM, re.compile(r"\b(feature\w*|enhanc\w*|document\w*|docs?)\b", re.I)),
    (
        TaskPriority.LOW,
        re.compile(r"\b(styles?|styling|cosmetic\w*|clean[- ]?up\w*|formatting)\b", re.I),
    ),
)

ENHANCE_PROMPT = """You turn short todo items into clear, actionable task descriptions.
Reply with a JSON object and nothing else, exactly in this shape:
{"description": "<enhanced task description>", "priority": "low" | "medium" | "high"}
Priority rules:
- security, vulnerability, crash or authentication problems are high
- features, enhancements and documentation are medium
- style, cosmetic and cleanup work is low
- when several rules apply, use the highest priority"""

CLEAN_PROMPT = """Convert the text you are given into exactly this JSON shape and output nothing else:
{"description": "<task description>", "priority": "low" | "medium" | "high"}
Keep the description text as close to the input as possible."""

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


class EnhancedTask(BaseModel):
    """Output contract of the enhance and clean stages."""

    model_config = ConfigDict(extra="forbid")

    description: str = Field(min_length=1)
    priority: TaskPriority

    @field_validator("description")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("description must not be blank")
        return value

    @field_validator("priority", mode="before")
    @classmethod
    def _normalize_priority(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().capitalize()
        return value


@dataclass(frozen=True)
class EnrichmentResult:
    description: str
    priority: TaskPriority
    project: str
    enhanced: bool = False


def rule_priority(*texts: str) -> Optional[TaskPriority]:
    """Highest priority whose keywords appear in any of ``texts``."""
    for priority, pattern in PRIORITY_KEYWORDS:
        if any(pattern.search(text) for text in texts if text):
            return priority
    return None


def parse_strict(text: str) -> Optional[EnhancedTask]:
    try:
        return EnhancedTask.model_validate_json(text.strip())
    except SchemaError:
        return None


def parse_embedded(text: str) -> Optional[EnhancedTask]:
    """Validate the outermost ``{...}`` block of ``text``."""
    found = _JSON_OBJECT.search(text)
    if found is None:
        return None
    try:
        return EnhancedTask.model_validate(json.loads(found.group(0)))
    except (ValueError, SchemaError):
        return None


class TaskEnricher:
    """Expand, prioritize and classify raw task descriptions."""

    def __init__(self, ai: AITextService, catalog: ProjectCatalog) -> None:
        self._ai = ai
        self._catalog = catalog

    @property
    def default_project(self) -> str:
        return self._catalog.default_project

    async def enrich(self, description: str, project: Optional[str] = None) -> EnrichmentResult:
        enhanced, predicted = await asyncio.gather(
            self._enhance(description),
            self._catalog.classify(description, self._ai),
        )
        if enhanced is None:
            result = EnrichmentResult(description, TaskPriority.MEDIUM, predicted)
        else:
            priority = rule_priority(description, enhanced.description) or enhanced.priority
            result = EnrichmentResult(enhanced.description, priority, predicted, enhanced=True)

        if project:
            result = EnrichmentResult(result.description, result.priority, project, result.enhanced)
        logger.debug(
            "task_enriched",
            enhanced=result.enhanced,
            priority=result.priority.value,
            project=result.project,
        )
        return result

    async def _enhance(self, description: str) -> Optional[EnhancedTask]:
        try:
            reply = await self._ai.chat(ENHANCE_PROMPT, user_turn(description))
        except ExternalServiceError as exc:
            logger.warning("task_enhance_failed", error=str(exc))
            return None

        parsed = parse_strict(reply)
        if parsed is not None:
            return parsed
        logger.info("task_enhance_unparseable", reply=reply[:200])
        return await self._clean(reply)

    async def _clean(self, raw_reply: str) -> Optional[EnhancedTask]:
        try:
            reply = await self._ai.chat(CLEAN_PROMPT, user_turn(raw_reply))
        except ExternalServiceError as exc:
            logger.warning("task_clean_failed", error=str(exc))
            return None
        parsed = parse_embedded(reply)
        if parsed is None:
            logger.info("task_clean_unparseable", reply=reply[:200])
        return parsed
