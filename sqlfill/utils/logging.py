"""Logging for sqlfill.

Loggers live under the ``sqlfill`` namespace. The binder and the execution
paths attach the rewritten statement to their debug records through
``extra={"extra_fields": {...}}``: the SQL text, the bind keys (never the
values) and the provider. :func:`configure_logging` installs a
:class:`StructuredFormatter` that renders those fields, plus the correlation
ID of the current context, as one JSON object per line.
"""

import logging
import sys
from contextvars import ContextVar
from typing import IO, Any, Optional, Union

from sqlfill.utils.serializers import to_json

__all__ = (
    "ROOT_LOGGER_NAME",
    "CorrelationIDFilter",
    "StructuredFormatter",
    "configure_logging",
    "correlation_id_var",
    "get_correlation_id",
    "get_logger",
    "set_correlation_id",
)

ROOT_LOGGER_NAME = "sqlfill"

correlation_id_var: "ContextVar[Optional[str]]" = ContextVar("sqlfill_correlation_id", default=None)


def set_correlation_id(correlation_id: Optional[str]) -> None:
    """Tag records logged from the current context. None clears the tag."""
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()


class CorrelationIDFilter(logging.Filter):
    """Stamp each record with the correlation ID active when it was logged."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        return True


class StructuredFormatter(logging.Formatter):
    """Render a record as a single-line JSON object.

    ``extra_fields`` are merged in at the top level, so a statement record
    carries ``sql``, ``parameters`` and ``provider`` keys.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: "dict[str, Any]" = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id:
            entry["correlation_id"] = correlation_id
        entry.update(getattr(record, "extra_fields", None) or {})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return to_json(entry)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the ``sqlfill`` namespace.

    Named loggers carry a :class:`CorrelationIDFilter`.

    Args:
        name: Dotted name, with or without the ``sqlfill.`` prefix. None
            returns the namespace root.

    Returns:
        The logger.
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    logger = logging.getLogger(name)
    if not any(isinstance(existing, CorrelationIDFilter) for existing in logger.filters):
        logger.addFilter(CorrelationIDFilter())
    return logger


def configure_logging(
    level: "Union[int, str]" = logging.INFO,
    *,
    structured: bool = True,
    stream: "Optional[IO[str]]" = None,
    handlers: "Optional[list[logging.Handler]]" = None,
) -> logging.Logger:
    """Route sqlfill's records to ``stream`` (stdout by default).

    Handlers installed by an earlier call are replaced, and records stop
    propagating to the root logger.

    Args:
        level: Minimum level, as a number or a name such as ``"DEBUG"``.
        structured: Format as JSON lines; otherwise as plain text.
        stream: Where the console handler writes.
        handlers: Extra handlers, added as given.

    Returns:
        The namespace root logger.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level.upper() if isinstance(level, str) else level)
    root.handlers.clear()

    console = logging.StreamHandler(stream or sys.stdout)
    if structured:
        console.setFormatter(StructuredFormatter())
    else:
        console.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.addHandler(console)
    for handler in handlers or ():
        root.addHandler(handler)
    root.propagate = False
    return root
