"""Structured logging configuration using structlog.

Provides an operation context for tracing intersection engine calls and
a JSON or console renderer writing to stderr.
"""

import logging
import sys
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Any, TextIO, cast

import structlog
from structlog.types import Processor

from sketchgeom.config import settings

# Context variables describing the operation in progress
_operation: ContextVar[str | None] = ContextVar("operation", default=None)
_shape_kinds: ContextVar[str | None] = ContextVar("shape_kinds", default=None)


def bind_operation_context(
    operation: str | None = None,
    shape_kinds: str | None = None,
) -> None:
    """Set operation context for the current context.

    Args:
        operation: Name of the kernel operation (e.g. "intersect").
        shape_kinds: Shape kinds involved, e.g. "Line/Rect".
    """
    if operation is not None:
        _operation.set(operation)
    if shape_kinds is not None:
        _shape_kinds.set(shape_kinds)


def clear_operation_context() -> None:
    """Clear all operation context variables."""
    _operation.set(None)
    _shape_kinds.set(None)


def get_operation_context() -> dict[str, str]:
    """The bound operation context, omitting unset values."""
    context = {"operation": _operation.get(), "shape_kinds": _shape_kinds.get()}
    return {key: value for key, value in context.items() if value is not None}


@contextmanager
def operation_context(
    operation: str | None = None,
    shape_kinds: str | None = None,
) -> Iterator[None]:
    """Bind operation context for a block, restoring the previous values after.

    Values left as None keep whatever the caller already bound.
    """
    tokens: list[tuple[ContextVar[str | None], Token[str | None]]] = []
    if operation is not None:
        tokens.append((_operation, _operation.set(operation)))
    if shape_kinds is not None:
        tokens.append((_shape_kinds, _shape_kinds.set(shape_kinds)))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


def _add_operation_context(
    logger: logging.Logger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Structlog processor to add operation context to log events."""
    _ = logger, method_name  # Required by structlog processor signature
    event_dict.update(get_operation_context())
    return event_dict


def _renderer(log_format: str, stream: TextIO) -> list[Processor]:
    """Final processors for ``log_format``; console colors only on a terminal."""
    if log_format == "json":
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=stream.isatty())]


def configure_logging(
    level: str | None = None,
    log_format: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Log lines go to stderr by default so that command output on stdout
    stays machine readable.

    Args:
        level: Log level name. Defaults to settings.LOG_LEVEL.
        log_format: "console" or "json". Defaults to settings.LOG_FORMAT.
        stream: Destination for log lines. Defaults to the current stderr.
    """
    level = (level or settings.LOG_LEVEL).upper()
    log_format = log_format or settings.LOG_FORMAT
    stream = stream or sys.stderr

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            _add_operation_context,
            *_renderer(log_format, stream),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Replaces any handler bound to an earlier stream
    logging.basicConfig(format="%(message)s", stream=stream, level=level, force=True)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to ``name``."""
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
