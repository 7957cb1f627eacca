"""Configuration management for the swarm."""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class AIConfig:
    """OpenAI-compatible chat endpoint (OpenAI, Ollama, LM Studio, ...)."""

    api_key: str
    base_url: Optional[str] = None
    model: str = "gpt-4o-mini"
    timeout: float = 30.0
    max_concurrent: int = 8


@dataclass(frozen=True)
class AzureOpenAIConfig:
    """Azure OpenAI service configuration."""

    api_key: str
    endpoint: str
    api_version: str = "2024-02-15-preview"
    deployment_name: str = "gpt-4"
    timeout: float = 30.0
    max_concurrent: int = 8


@dataclass(frozen=True)
class Config:
    """Application configuration loaded from environment variables."""

    ai: Optional[AIConfig] = None
    azure_openai: Optional[AzureOpenAIConfig] = None
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "console"
    check_interval: float = 30.0
    storage_timeout: float = 5.0
    task_timeout: float = 300.0
    default_project: str = "madness_interactive"
    project_confidence: float = 0.5
    projects: Dict[str, str] = field(default_factory=dict)
    task_store_path: Optional[str] = None
    git_workdir: str = "."
    browser_command: Tuple[str, ...] = ()
    command_timeout: float = 120.0

    @classmethod
    def from_env(cls) -> Config:
        """Load configuration from environment variables."""
        ai_key = os.getenv("SWARM_AI_API_KEY") or os.getenv("OPENAI_API_KEY")
        ai_base_url = os.getenv("SWARM_AI_BASE_URL")
        ai_config = None
        # Local OpenAI-compatible servers accept any key.
        if ai_key or ai_base_url:
            ai_config = AIConfig(
                api_key=ai_key or "not-needed",
                base_url=ai_base_url,
                model=os.getenv("SWARM_AI_MODEL", "gpt-4o-mini"),
                timeout=float(os.getenv("SWARM_AI_TIMEOUT", "30")),
                max_concurrent=int(os.getenv("SWARM_AI_MAX_CONCURRENT", "8")),
            )

        azure_key = os.getenv("AZURE_OPENAI_KEY")
        azure_endpoint = os.getenv("AZURE_OPENAI_ENDPOINT")
        azure_config = None
        if azure_key and azure_endpoint:
            azure_config = AzureOpenAIConfig(
                api_key=azure_key,
                endpoint=azure_endpoint,
                api_version=os.getenv("AZURE_OPENAI_API_VERSION", "2024-02-15-preview"),
                deployment_name=os.getenv("AZURE_OPENAI_DEPLOYMENT", "gpt-4"),
                timeout=float(os.getenv("SWARM_AI_TIMEOUT", "30")),
                max_concurrent=int(os.getenv("AZURE_OPENAI_MAX_CONCURRENT", "8")),
            )

        browser_command = os.getenv("SWARM_BROWSER_COMMAND", "")

        return cls(
            ai=ai_config,
            azure_openai=azure_config,
            environment=os.getenv("ENVIRONMENT", "development"),
            log_level=os.getenv("SWARM_LOG_LEVEL", "INFO"),
            log_format=os.getenv("SWARM_LOG_FORMAT", "console"),
            check_interval=float(os.getenv("SWARM_CHECK_INTERVAL", "30")),
            storage_timeout=float(os.getenv("SWARM_STORAGE_TIMEOUT", "5")),
            task_timeout=float(os.getenv("SWARM_TASK_TIMEOUT", "300")),
            default_project=os.getenv("SWARM_DEFAULT_PROJECT", "madness_interactive"),
            project_confidence=float(os.getenv("SWARM_PROJECT_CONFIDENCE", "0.5")),
            projects=load_projects(os.getenv("SWARM_PROJECTS_FILE")),
            task_store_path=os.getenv("SWARM_TASK_STORE_PATH"),
            git_workdir=os.getenv("SWARM_GIT_WORKDIR", "."),
            browser_command=tuple(browser_command.split()),
            command_timeout=float(os.getenv("SWARM_COMMAND_TIMEOUT", "120")),
        )


def load_projects(path: Optional[str]) -> Dict[str, str]:
    """Read a ``{"project": "description"}`` JSON catalog; missing path means empty."""
    if not path:
        return {}
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Project catalog {path} must be a JSON object")
    return {str(name): str(description) for name, description in data.items()}
