"""Structured logging setup.

Diagnostics (malformed stanzas, duplicate declarations, walk progress) go to
stderr through structlog so that stdout only ever carries the audit verdict.

Usage:
    from licaudit.observability import configure_logging

    configure_logging(level="info", fmt="json")

    import structlog
    log = structlog.get_logger(__name__)
    log.warning("malformed_licence_hash", hash=value)
"""

from __future__ import annotations

import sys
from typing import TextIO

import structlog
from structlog.typing import Processor

from licaudit.env_policy import log_level_from_env

LOG_FORMATS = ("console", "json")


def configure_logging(
    level: str | None = None,
    fmt: str = "console",
    *,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog once per process.

    Args:
        level: Level name; falls back to ``LICAUDIT_LOG_LEVEL`` then WARNING.
        fmt: ``console`` for human output, ``json`` for log aggregation.
        stream: Destination, stderr by default.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if fmt == "json":
        final_processor: Processor = structlog.processors.JSONRenderer()
    else:
        final_processor = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=shared_processors + [final_processor],
        wrapper_class=structlog.make_filtering_bound_logger(log_level_from_env(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=False,
    )
