"""Centralized logging configuration for SQLSimply.

Every module logs through a logger under the ``sqlsimply`` namespace so the
library can be silenced or routed as one unit. Statement and connection events
are logged with :func:`log_with_context`, whose fields (``verb``, ``sql``,
``parameter_count``, ``row_id``, ``database``) become top-level keys of the
JSON lines written by :class:`StructuredFormatter`.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from sqlsimply.exceptions import ImproperConfigurationError
from sqlsimply.utils.serializers import to_json

if TYPE_CHECKING:
    from logging import LogRecord

__all__ = (
    "CorrelationIDFilter",
    "StructuredFormatter",
    "configure_logging",
    "correlation_id_var",
    "get_correlation_id",
    "get_logger",
    "log_with_context",
    "set_correlation_id",
)

ROOT_LOGGER_NAME = "sqlsimply"
SIMPLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FORMAT_STYLES = ("structured", "simple")

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def set_correlation_id(correlation_id: str | None) -> None:
    """Tag every record logged from the current context with ``correlation_id``.

    Pass None to clear it.
    """
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> str | None:
    return correlation_id_var.get()


class StructuredFormatter(logging.Formatter):
    """Render records as one JSON object per line.

    Fields passed through :func:`log_with_context` are merged into the top
    level of the object; they never replace the base keys.
    """

    def format(self, record: LogRecord) -> str:
        entry: dict[str, Any] = dict(getattr(record, "extra_fields", None) or {})
        entry.update(
            timestamp=self.formatTime(record, self.datefmt),
            level=record.levelname,
            logger=record.name,
            message=record.getMessage(),
            source=f"{record.module}.{record.funcName}:{record.lineno}",
        )

        correlation_id = getattr(record, "correlation_id", None) or get_correlation_id()
        if correlation_id:
            entry["correlation_id"] = correlation_id
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return to_json(entry)


class CorrelationIDFilter(logging.Filter):
    """Copy the context's correlation ID onto each record it sees."""

    def filter(self, record: LogRecord) -> bool:
        correlation_id = get_correlation_id()
        if correlation_id:
            record.correlation_id = correlation_id  # type: ignore[attr-defined]
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger under the ``sqlsimply`` namespace.

    Args:
        name: Dotted name relative to the package, e.g. ``"builder"``. Names
            already starting with ``sqlsimply`` are used as given.

    Returns:
        The logger, carrying a single :class:`CorrelationIDFilter`.
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIDFilter) for f in logger.filters):
        logger.addFilter(CorrelationIDFilter())
    return logger


def _resolve_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        msg = f"Unknown logging level {level!r}"
        raise ImproperConfigurationError(msg)
    return resolved


def _build_formatter(format_style: str) -> logging.Formatter:
    if format_style == "structured":
        return StructuredFormatter()
    return logging.Formatter(SIMPLE_FORMAT)


def configure_logging(
    level: str | int = "INFO",
    format_style: str = "structured",
    log_to_file: str | None = None,
    extra_handlers: list[logging.Handler] | None = None,
) -> None:
    """Route all SQLSimply logging to stdout, and optionally to a file.

    Replaces any handlers previously installed on the ``sqlsimply`` logger and
    stops propagation to the root logger. File output is always structured.

    Args:
        level: Level name (``"DEBUG"``, ``"info"``...) or numeric level.
        format_style: ``"structured"`` for JSON lines, ``"simple"`` for text.
        log_to_file: Optional path of a log file to append to.
        extra_handlers: Additional handlers, attached as given.

    Raises:
        ImproperConfigurationError: If ``level`` or ``format_style`` is not recognized.
    """
    if format_style not in FORMAT_STYLES:
        msg = f"Unknown log format style {format_style!r}; expected one of {', '.join(FORMAT_STYLES)}"
        raise ImproperConfigurationError(msg)
    resolved_level = _resolve_level(level)

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(resolved_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(_build_formatter(format_style))
    root_logger.addHandler(console_handler)

    if log_to_file:
        file_handler = logging.FileHandler(log_to_file)
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    for handler in extra_handlers or ():
        root_logger.addHandler(handler)

    root_logger.propagate = False

    log_with_context(
        root_logger,
        logging.INFO,
        "SQLSimply logging configured",
        configured_level=logging.getLevelName(resolved_level),
        format_style=format_style,
        log_file=log_to_file,
        handlers_count=len(root_logger.handlers),
    )


def log_with_context(logger: logging.Logger, level: int, message: str, **extra_fields: Any) -> None:
    """Log ``message`` with structured fields attached as ``extra_fields``.

    Nothing is built when ``level`` is disabled for ``logger``.
    """
    if not logger.isEnabledFor(level):
        return
    logger.log(level, message, extra={"extra_fields": extra_fields}, stacklevel=2)
