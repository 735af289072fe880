"""
Structured logging for sqlbridge.

Manifesto:
    Schema reconciliation runs at application startup against databases
    that already hold data. When an ALTER sequence is emitted, operators
    need to see which facet of which column triggered it, with the
    dialect, in a form log aggregation can query. This module configures
    structlog once and hands out bound loggers everywhere else.

Architecture:
    ::

        configure_logging(level="INFO", json_format=None, service="sqlbridge")
              │
              ▼
        structlog processor chain:
          1. TimeStamper (iso)
          2. merge_contextvars
          3. add_log_level / add_logger_name
          4. service metadata
          5. JSONRenderer (non-tty) or ConsoleRenderer (tty)

        logger = get_logger(__name__)
        logger.debug("column_alteration_detected", table="ACCOUNT",
                     column="BALANCE", type_changed=True)

Examples:
    >>> from sqlbridge.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> log = get_logger(__name__)
    >>> with LogContext(dialect="postgresql"):
    ...     log.info("table_plan_built", table="ACCOUNT", statements=3)

Tags:
    logging, structlog, observability, sqlbridge
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from sqlbridge.core.errors import ConfigError

_SERVICE_NAME = "sqlbridge"
_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _library_metadata(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", _SERVICE_NAME)
    return event_dict


def _level_number(level: str) -> int:
    name = level.strip().upper()
    if name not in _LEVELS:
        raise ConfigError(f"Unknown log level {level!r}; expected one of {', '.join(_LEVELS)}")
    return getattr(logging, name)


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "sqlbridge",
    add_timestamp: bool = True,
) -> None:
    """Configure structlog for sqlbridge and the stdlib root handler.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        json_format: True for JSON lines, False for console, None to pick
            JSON when stdout is not a terminal
        service: Value of the ``service`` field on every event
        add_timestamp: Prefix events with an ISO timestamp

    Raises:
        ConfigError: if ``level`` is not a known level name
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service
    threshold = _level_number(level)
    interactive = sys.stdout.isatty()
    if json_format is None:
        json_format = not interactive

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _library_metadata,
    ]
    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))
    if json_format:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=interactive))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=threshold)


def configure_from_settings(settings: Any) -> None:
    """Configure logging from ``SqlBridgeSettings.log_level`` / ``log_format``."""
    fmt = settings.log_format.lower()
    configure_logging(level=settings.log_level, json_format=None if fmt == "auto" else fmt == "json")


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach fields to every event logged from the current context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Scoped context fields; values shadowed by a nested scope come back on exit.

    Example:
        with LogContext(dialect="oracle"):
            with LogContext(table="ACCOUNT"):
                logger.info("column_plan_built")
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs
        self._previous: dict[str, Any] = {}

    def __enter__(self) -> LogContext:
        current = structlog.contextvars.get_contextvars()
        self._previous = {k: current[k] for k in self._context if k in current}
        bind_context(**self._context)
        return self

    def __exit__(self, *args: Any) -> None:
        unbind_context(*self._context.keys())
        if self._previous:
            bind_context(**self._previous)


__all__ = [
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
