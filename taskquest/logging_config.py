"""
Structured logging configuration using structlog wrapping stdlib.

Provides JSON-formatted structured log output when requested and
human-readable console output otherwise.

All log records go to stderr. The CLI actions and the maintenance runner
print their JSON results on stdout, so that stream stays parseable
(`taskquest --action status | jq .`). Records from modules that use plain
`logging.getLogger` are rendered by the same structlog formatter as
those from `get_logger`.

Usage:
    from taskquest.logging_config import setup_logging
    setup_logging()
"""

from __future__ import annotations

import logging
import os
import sys

import structlog


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    if level is None:
        level = os.environ.get("TASKQUEST_LOG_LEVEL", "WARNING")

    if json_output is None:
        json_output = os.environ.get("TASKQUEST_LOG_FORMAT", "").lower() == "json"

    numeric_level = getattr(logging, level.upper(), logging.WARNING)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


__all__ = ["get_logger", "setup_logging"]
