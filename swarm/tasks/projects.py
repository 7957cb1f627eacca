"""Project classification for incoming tasks."""
from __future__ import annotations

import json
import re
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as SchemaError

from swarm.core.errors import ExternalServiceError
from swarm.observability.logging import get_logger
from swarm.services.ai import AITextService, user_turn

logger = get_logger(__name__)

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


class ProjectMatch(BaseModel):
    model_config = ConfigDict(extra="ignore")

    project: str = Field(min_length=1)
    confidence: float = Field(ge=0.0, le=1.0)


class ProjectCatalog:
    """Known projects and their descriptions, plus the default for weak matches."""

    def __init__(
        self,
        projects: Dict[str, str],
        default_project: str,
        min_confidence: float = 0.5,
    ) -> None:
        self.projects = dict(projects)
        self.default_project = default_project
        self.min_confidence = min_confidence

    def system_prompt(self) -> str:
        listing = "\n".join(f"- {name}: {desc}" for name, desc in self.projects.items())
        return (
            "You assign software tasks to projects. Known projects:\n"
            f"{listing}\n"
            'Reply with JSON only: {"project": "<name from the list>", "confidence": <0.0-1.0>}'
        )

    async def classify(self, description: str, ai: AITextService) -> str:
        """Return the best matching project name, or the default when unsure."""
        if not self.projects:
            return self.default_project
        try:
            reply = await ai.chat(self.system_prompt(), user_turn(description))
        except ExternalServiceError as exc:
            logger.warning("project_classification_failed", error=str(exc))
            return self.default_project

        match = self._parse(reply)
        if match is None:
            logger.info("project_classification_unparseable", reply=reply[:200])
            return self.default_project
        name = self._resolve(match.project)
        if name is None or match.confidence < self.min_confidence:
            logger.info(
                "project_classification_low_confidence",
                project=match.project,
                confidence=match.confidence,
            )
            return self.default_project
        return name

    @staticmethod
    def _parse(reply: str) -> Optional[ProjectMatch]:
        found = _JSON_OBJECT.search(reply)
        if found is None:
            return None
        try:
            return ProjectMatch.model_validate(json.loads(found.group(0)))
        except (ValueError, SchemaError):
            return None

    def _resolve(self, candidate: str) -> Optional[str]:
        wanted = candidate.strip().lower()
        for name in self.projects:
            if name.lower() == wanted:
                return name
        return None
