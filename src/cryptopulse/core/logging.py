"""
Structured logging for crypto-pulse.

Every module logs key/value events through structlog; a workflow run binds
``workflow`` and ``run_id`` so each event of the run can be correlated.
Events are written to stderr, leaving stdout to command output.

Examples:
    >>> from cryptopulse.core.logging import configure_logging, get_logger
    >>> configure_logging(level="INFO", json_format=True)
    >>> logger = get_logger(__name__)
    >>> logger.info("workflow.start", workflow="crypto-twitter-workflow")

    Console rendering (colored when stderr is a terminal):

    >>> configure_logging(level="DEBUG", json_format=False)
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_SERVICE_NAME = "crypto-pulse"

_ECS_FIELDS = (("timestamp", "@timestamp"), ("level", "log.level"), ("logger_name", "log.logger"))


def _add_service_metadata(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def _ecs_field_names(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Rename ``timestamp``, ``level`` and ``logger_name`` to their ECS names."""
    for field, ecs_field in _ECS_FIELDS:
        if field in event_dict:
            event_dict[ecs_field] = event_dict.pop(field)
    return event_dict


def _processors(json_format: bool, add_timestamp: bool) -> list[Processor]:
    processors: list[Processor] = []
    if add_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))
    processors += [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]
    if json_format:
        processors += [_ecs_field_names, structlog.processors.JSONRenderer(ensure_ascii=False)]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return processors


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "crypto-pulse",
    add_timestamp: bool = True,
) -> None:
    """Configure structlog (and stdlib logging, used by httpx) for the process.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        json_format: JSON lines when True, console rendering when False,
            JSON unless stderr is a terminal when None
        service: Value of the ``service.name`` field
        add_timestamp: Include an ISO timestamp
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stderr.isatty()
    numeric_level = getattr(logging, level.upper())

    structlog.configure(
        processors=_processors(json_format, add_timestamp),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level)


def get_logger(name: str | None = None) -> Any:
    """Logger whose events carry ``logger_name=name``; resolved lazily so
    module-level loggers pick up a later ``configure_logging``."""
    if name:
        return structlog.get_logger(logger_name=name)
    return structlog.get_logger()


def bind_context(**kwargs: Any) -> None:
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Bind fields for the duration of a ``with`` block.

    Example:
        with LogContext(workflow="crypto-twitter-workflow", run_id="abc123"):
            logger.info("workflow.step_start", step="fetch-tweets")
    """

    def __init__(self, **fields: Any):
        self._fields = fields

    def __enter__(self) -> LogContext:
        bind_context(**self._fields)
        return self

    def __exit__(self, *exc_info: Any) -> None:
        unbind_context(*self._fields)


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
