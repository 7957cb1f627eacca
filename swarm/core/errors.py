"""Error taxonomy for the swarm.

Each error carries the HTTP status the API layer answers with.
"""
from __future__ import annotations


class SwarmError(Exception):
    """Base exception for all swarm errors."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AgentNotFoundError(SwarmError):
    status_code = 404

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Agent '{name}' not found")


class TaskNotFoundError(SwarmError):
    status_code = 404


class InvalidTransferTarget(SwarmError):
    """Raised when a transfer names an agent outside the downstream allow-list."""

    status_code = 400

    def __init__(self, source: str, target: str) -> None:
        self.source = source
        self.target = target
        super().__init__(f"Invalid transfer target '{target}' for agent '{source}'")


class ToolError(SwarmError):
    status_code = 400


class ValidationError(SwarmError):
    """Input did not match a state's advisory validation rules."""

    status_code = 422


class InvalidStatusTransition(SwarmError):
    status_code = 409


class StorageError(SwarmError):
    status_code = 500


class DuplicateKeyError(StorageError):
    status_code = 409

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Duplicate key: {key}")


class ExternalServiceError(SwarmError):
    """AI backend or external process unreachable, timed out or malformed."""

    status_code = 502
