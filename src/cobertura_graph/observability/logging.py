"""Structured logging setup on top of ``structlog``.

Modules log through ``structlog.get_logger(__name__)`` with snake_case event
names and key/value context. ``configure_logging`` decides where those events
go and how they render; correlation fields bound with ``build_context`` are
merged into every event emitted inside the scope.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TextIO

import structlog

_DEFAULT_LEVEL = "INFO"


def configure_logging(
    level: int | str = _DEFAULT_LEVEL,
    *,
    json_output: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Install the process-wide structlog pipeline.

    Parameters
    ----------
    level:
        Minimum level name or number; events below it are dropped cheaply.
    json_output:
        Render one JSON object per line instead of the console format.
    stream:
        Destination; defaults to ``sys.stderr`` so command output on stdout stays clean.
    """
    renderer: structlog.types.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_coerce_level(level)),
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=False,
    )


def reset_logging() -> None:
    """Restore structlog defaults and drop bound correlation fields."""
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@contextmanager
def build_context(**fields: object) -> Iterator[None]:
    """Bind correlation fields (build file, start dir, ...) for events in scope."""
    tokens = structlog.contextvars.bind_contextvars(**fields)
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)


def _coerce_level(level: int | str) -> int:
    if isinstance(level, bool):
        raise ValueError("log level must be a level name or number")
    if isinstance(level, int):
        return level
    resolved = logging.getLevelNamesMapping().get(level.strip().upper())
    if resolved is None:
        raise ValueError(f"unknown log level: {level!r}")
    return resolved


__all__ = ["build_context", "configure_logging", "reset_logging"]
