"""structlog configuration for applications embedding numeric fields."""

from __future__ import annotations

import logging
import sys

import structlog


def setup_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog once for the embedding application.

    The library only emits debug events (blocked edits, commits, engine
    fallbacks) plus warnings for failing hooks, so ``DEBUG`` is needed to trace
    edits. ``json_output=False`` switches to the human readable console renderer.
    """
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    level = getattr(logging, str(log_level).upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
    )


def field_context(field_id: str):
    """Bind ``field_id`` to every event logged inside the ``with`` block."""
    return structlog.contextvars.bound_contextvars(field_id=field_id)
