"""Structured logging configuration using structlog.

JSON output for deployed environments, console output for development.
Values under secret-looking keys are masked before rendering.
"""
from __future__ import annotations

import sys
from typing import Any, Dict, List, cast

import structlog
from structlog.types import EventDict, WrappedLogger

SECRET_KEYS: frozenset[str] = frozenset({
    "api_key",
    "apikey",
    "authorization",
    "password",
    "secret",
    "token",
})

_LEVELS = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
    "CRITICAL": 50,
}


def redact_secrets(_logger: WrappedLogger, _method_name: str, event_dict: EventDict) -> EventDict:
    """Mask values whose key names look like credentials."""
    return cast(EventDict, _redact(event_dict))


def _redact(data: Dict[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for key, value in data.items():
        if key.lower() in SECRET_KEYS:
            result[key] = "[REDACTED]"
        elif isinstance(value, dict):
            result[key] = _redact(value)
        else:
            result[key] = value
    return result


def setup_logging(level: str = "INFO", format: str = "console") -> None:
    """Configure structlog for the process.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: "json" for machine-readable output, anything else for console
    """
    processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
    ]
    if format == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_LEVELS.get(level.upper(), 20)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a logger bound to ``name`` (typically the module ``__name__``)."""
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
