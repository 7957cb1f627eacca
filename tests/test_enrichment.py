"""Tests for the task enrichment pipeline and project classification."""
from __future__ import annotations

import json

import pytest

from swarm.core.errors import ExternalServiceError
from swarm.core.models import TaskPriority
from swarm.tasks.enrichment import TaskEnricher, parse_embedded, parse_strict, rule_priority
from swarm.tasks.projects import ProjectCatalog

DEFAULT = "madness_interactive"
PROJECTS = {
    "swarmonomicon": "Agent swarm and task queue",
    "dvtte": "Computer vision tooling",
}


def _enricher(ai, projects=None) -> TaskEnricher:
    return TaskEnricher(ai, ProjectCatalog(projects or {}, default_project=DEFAULT))


def _contract(description: str, priority: str) -> str:
    return json.dumps({"description": description, "priority": priority})


@pytest.mark.anyio
@pytest.mark.parametrize(
    "description",
    ["fix critical security vulnerability in login", "rename helpers", "update the docs"],
)
async def test_unreachable_ai_falls_back(down_ai, description: str) -> None:
    result = await _enricher(down_ai, PROJECTS).enrich(description)

    assert (result.description, result.priority, result.project) == (
        description,
        TaskPriority.MEDIUM,
        DEFAULT,
    )
    assert not result.enhanced


@pytest.mark.anyio
async def test_keyword_rules_override_model_priority(scripted_ai) -> None:
    ai = scripted_ai(enhance=_contract("Patch the login flow against session fixation", "low"))
    result = await _enricher(ai).enrich("fix critical security vulnerability in login")

    assert result.enhanced
    assert result.description == "Patch the login flow against session fixation"
    assert result.priority is TaskPriority.HIGH


@pytest.mark.anyio
async def test_model_priority_used_without_keywords(scripted_ai) -> None:
    ai = scripted_ai(enhance=_contract("Rename the parser helpers consistently", "HIGH"))
    result = await _enricher(ai).enrich("rename parser helpers")
    assert result.priority is TaskPriority.HIGH


@pytest.mark.anyio
async def test_clean_pass_recovers_wrapped_json(scripted_ai) -> None:
    ai = scripted_ai(
        enhance="Sure! I think this task is about renaming things, priority low.",
        clean='Here you go:\n```json\n{"description": "Rename things", "priority": "low"}\n```',
    )
    result = await _enricher(ai).enrich("rename things")

    assert ai.kinds() == ["enhance", "clean"]
    assert result.description == "Rename things"
    assert result.priority is TaskPriority.LOW


@pytest.mark.anyio
async def test_extra_fields_break_the_strict_contract(scripted_ai) -> None:
    noisy = json.dumps(
        {"description": "Tidy the module", "priority": "low", "target_agent": "git"}
    )
    ai = scripted_ai(enhance=noisy, clean=_contract("Tidy the module", "low"))
    result = await _enricher(ai).enrich("tidy module")

    assert ai.kinds() == ["enhance", "clean"]
    assert result.priority is TaskPriority.LOW


@pytest.mark.anyio
@pytest.mark.parametrize(
    "clean_reply",
    ["no json here", '{"description": "", "priority": "low"}', ExternalServiceError("down")],
)
async def test_unrecoverable_output_falls_back(scripted_ai, clean_reply) -> None:
    ai = scripted_ai(enhance="garbage", clean=clean_reply)
    result = await _enricher(ai).enrich("tidy module")

    assert (result.description, result.priority, result.project) == (
        "tidy module",
        TaskPriority.MEDIUM,
        DEFAULT,
    )


@pytest.mark.anyio
async def test_project_is_classified_from_catalog(scripted_ai) -> None:
    ai = scripted_ai(
        enhance=_contract("Add retries", "medium"),
        classify='{"project": "Swarmonomicon", "confidence": 0.92}',
    )
    result = await _enricher(ai, PROJECTS).enrich("add retries to the task queue")
    assert result.project == "swarmonomicon"


@pytest.mark.anyio
@pytest.mark.parametrize(
    "reply",
    [
        '{"project": "swarmonomicon", "confidence": 0.2}',
        '{"project": "unknown", "confidence": 0.99}',
        "swarmonomicon",
        ExternalServiceError("timeout"),
    ],
)
async def test_weak_classification_uses_default(scripted_ai, reply) -> None:
    ai = scripted_ai(enhance=_contract("Add retries", "medium"), classify=reply)
    result = await _enricher(ai, PROJECTS).enrich("add retries")
    assert result.project == DEFAULT
    assert result.description == "Add retries"


@pytest.mark.anyio
async def test_caller_project_overrides_prediction(scripted_ai) -> None:
    ai = scripted_ai(
        enhance=_contract("Add retries", "medium"),
        classify='{"project": "swarmonomicon", "confidence": 0.9}',
    )
    result = await _enricher(ai, PROJECTS).enrich("add retries", project="dvtte")
    assert result.project == "dvtte"


@pytest.mark.anyio
async def test_empty_catalog_skips_classification(scripted_ai) -> None:
    ai = scripted_ai(enhance=_contract("Add retries", "medium"))
    await _enricher(ai).enrich("add retries")
    assert "classify" not in ai.kinds()


@pytest.mark.parametrize(
    "texts,expected",
    [
        (("fix crash on startup",), TaskPriority.HIGH),
        (("add a feature flag",), TaskPriority.MEDIUM),
        (("cosmetic cleanup of the footer",), TaskPriority.LOW),
        (("cleanup docs and patch auth bypass",), TaskPriority.HIGH),
        (("update documentation styling",), TaskPriority.MEDIUM),
        (("rename variables",), None),
        (("rename variables", "improve authentication"), TaskPriority.HIGH),
        (("author the release notes",), None),
        (("authored docs for the cli",), TaskPriority.MEDIUM),
        (("clean up the logging module",), TaskPriority.LOW),
        (("fix button styles",), TaskPriority.LOW),
        (("require authorization on admin routes",), TaskPriority.HIGH),
        (("auth bypass in the api",), TaskPriority.HIGH),
    ],
)
def test_rule_priority(texts, expected) -> None:
    assert rule_priority(*texts) is expected


def test_parsers() -> None:
    assert parse_strict(_contract("x", "Medium")).priority is TaskPriority.MEDIUM
    assert parse_strict("prefix " + _contract("x", "low")) is None
    assert parse_strict(_contract("x", "urgent")) is None
    assert parse_embedded("prefix " + _contract("x", "low") + " suffix").description == "x"
    assert parse_embedded("nothing") is None
