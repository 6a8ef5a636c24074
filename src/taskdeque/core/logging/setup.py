from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import orjson
import structlog

from taskdeque.core.config.settings import settings


def _json_serializer(obj: Any, default: Any) -> str:
    """
    High-performance JSON serializer for structured logs.

    Uses orjson for speed and deterministic output.
    """
    return orjson.dumps(obj, default=default).decode("utf-8")


def configure_logging(*, level: Optional[str] = None) -> None:
    """
    Configure structured logging for the entire application.

    Call once at process startup. Libraries embedding taskdeque may skip it
    and keep whatever structlog configuration they already have.
    """
    level = level or settings.log_level
    log_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Any] = [
        # Merge context variables (sequencer name, step, etc.)
        structlog.contextvars.merge_contextvars,

        # Standard metadata
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),

        # Exception handling
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.dict_tracebacks,

        # Final JSON output
        structlog.processors.JSONRenderer(serializer=_json_serializer),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )

    # Ensure stdlib logging flows through the same output
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


@contextmanager
def bound_context(**values: Any) -> Iterator[None]:
    """
    Bind contextual information to log entries for the duration of a block.

    Previous values are restored on exit, so nested sequencers do not leak
    their names into each other's logs.

    Example:
        with bound_context(sequencer="fetch-users"):
            step(seq)
    """
    with structlog.contextvars.bound_contextvars(**values):
        yield
