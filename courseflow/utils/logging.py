# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Structured logging configuration using structlog.

The engine's modules log through the standard library
(logging.getLogger(__name__), %-style messages). setup_logging() installs a
structlog ProcessorFormatter on the root logger so those records, and any
emitted through get_logger(), are rendered the same way: colored console
output in development or debug mode, one JSON object per line otherwise.
Fields bound with bind_context() are attached to every record.

Example:
    >>> from courseflow.utils.logging import setup_logging, bind_context
    >>> from courseflow.core.config import get_settings
    >>> setup_logging(get_settings())
    >>> bind_context(school_id="school-1", course_id="course-1")
    >>> logging.getLogger("courseflow.domains.voting").info("Voting finalized")
"""

import logging
import sys
from typing import TYPE_CHECKING

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from courseflow.core.config.settings import Settings

# Chatty below WARNING even when the engine runs at DEBUG
QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite", "asyncpg", "asyncio")


class _RootHandler(logging.StreamHandler):
    """Stdout handler owned by setup_logging(), replaced on each call."""


def _shared_processors() -> list[Processor]:
    """Processors applied to structlog and stdlib records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def _render_processors(settings: "Settings") -> list[Processor]:
    """Final processors: console for development, JSON everywhere else."""
    if settings.is_development or settings.debug:
        return [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
        ]
    return [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]


def setup_logging(settings: "Settings") -> None:
    """Configure structlog and the standard library root logger.

    Safe to call more than once; the previous handler is replaced.

    Args:
        settings: Application settings providing log_level, debug and
            environment.
    """
    level = getattr(logging, settings.log_level, logging.INFO)
    shared = _shared_processors()

    structlog.configure(
        processors=[
            *shared,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = _RootHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=_render_processors(settings),
        )
    )

    root = logging.getLogger()
    for existing in [h for h in root.handlers if isinstance(h, _RootHandler)]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger("courseflow").setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger that accepts key-value fields.

    Args:
        name: Usually __name__ of the calling module.
    """
    return structlog.get_logger(name)


def bind_context(**fields: object) -> None:
    """Attach fields to every record logged in the current context.

    Typical fields are the school, course or acting user of the unit of
    work being processed.
    """
    structlog.contextvars.bind_contextvars(**fields)


def clear_context() -> None:
    """Drop every field bound with bind_context()."""
    structlog.contextvars.clear_contextvars()
