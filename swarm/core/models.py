"""Core data models shared across swarm components."""
from __future__ import annotations

import copy
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


def now_ts() -> int:
    """Current time as epoch seconds."""
    return int(time.time())


@dataclass(slots=True)
class ValidationRule:
    """Advisory input rule attached to a state."""

    pattern: str
    error_message: str

    def matches(self, text: str) -> bool:
        return re.fullmatch(self.pattern, text.strip(), flags=re.IGNORECASE) is not None


@dataclass(slots=True)
class State:
    """A single conversational stage of an agent."""

    name: str
    prompt: str = ""
    transitions: Dict[str, str] = field(default_factory=dict)
    validation: List[ValidationRule] = field(default_factory=list)

    def check(self, text: str) -> List[str]:
        """Return the messages of every validation rule ``text`` fails.

        The result is a hint for the caller; nothing enforces it.
        """
        return [rule.error_message for rule in self.validation if not rule.matches(text)]


@dataclass(slots=True)
class StateMachine:
    """Finite automaton definition: states keyed by id plus the initial state id."""

    states: Dict[str, State]
    initial_state: str

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(f"Initial state '{self.initial_state}' is not a declared state")
        for state_id, state in self.states.items():
            for event, target in state.transitions.items():
                if target not in self.states:
                    raise ValueError(
                        f"Transition '{event}' of state '{state_id}' targets unknown state '{target}'"
                    )


@dataclass(slots=True)
class Tool:
    """Tool declared by an agent; ``parameters`` maps required names to descriptions."""

    name: str
    description: str = ""
    parameters: Dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class AgentDescriptor:
    """Static configuration of an agent, keyed by its unique name."""

    name: str
    public_description: str = ""
    instructions: str = ""
    tools: List[Tool] = field(default_factory=list)
    downstream_agents: List[str] = field(default_factory=list)
    personality: Optional[Dict[str, Any]] = None
    state_machine: Optional[StateMachine] = None

    def snapshot(self) -> AgentDescriptor:
        return copy.deepcopy(self)


@dataclass(slots=True)
class MessageMetadata:
    agent: str
    state: Optional[str] = None
    transfer_target: Optional[str] = None
    context: Dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class Message:
    """Canonical message exchanged between callers and agents."""

    content: str
    role: str = "assistant"
    timestamp: int = field(default_factory=now_ts)
    metadata: Optional[MessageMetadata] = None

    @classmethod
    def from_user(cls, content: str) -> Message:
        return cls(content=content, role="user")


class TaskPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {TaskPriority.LOW: 0, TaskPriority.MEDIUM: 1, TaskPriority.HIGH: 2}


class TaskStatus(str, Enum):
    """Lifecycle of a task; only moves forward."""

    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)

    def can_advance_to(self, other: TaskStatus) -> bool:
        return other in _NEXT_STATUSES[self]


_NEXT_STATUSES = {
    TaskStatus.PENDING: {TaskStatus.IN_PROGRESS},
    TaskStatus.IN_PROGRESS: {TaskStatus.COMPLETED, TaskStatus.FAILED},
    TaskStatus.COMPLETED: set(),
    TaskStatus.FAILED: set(),
}


@dataclass(slots=True)
class TodoTask:
    """Unit of asynchronous work routed to a target agent."""

    id: str
    description: str
    target_agent: str
    priority: TaskPriority = TaskPriority.MEDIUM
    enhanced_description: Optional[str] = None
    project: Optional[str] = None
    source_agent: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING
    created_at: int = field(default_factory=now_ts)
    completed_at: Optional[int] = None
    error: Optional[str] = None

    @property
    def work_text(self) -> str:
        """Text handed to the target agent: the enhanced description when present."""
        if self.enhanced_description and self.enhanced_description.strip():
            return self.enhanced_description
        return self.description

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "enhanced_description": self.enhanced_description,
            "priority": self.priority.value,
            "project": self.project,
            "source_agent": self.source_agent,
            "target_agent": self.target_agent,
            "status": self.status.value,
            "created_at": self.created_at,
            "completed_at": self.completed_at,
            "error": self.error,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> TodoTask:
        return cls(
            id=record["id"],
            description=record["description"],
            target_agent=record["target_agent"],
            priority=TaskPriority(record.get("priority", TaskPriority.MEDIUM.value)),
            enhanced_description=record.get("enhanced_description"),
            project=record.get("project"),
            source_agent=record.get("source_agent"),
            status=TaskStatus(record.get("status", TaskStatus.PENDING.value)),
            created_at=int(record["created_at"]),
            completed_at=record.get("completed_at"),
            error=record.get("error"),
        )
