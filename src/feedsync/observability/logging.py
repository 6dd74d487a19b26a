"""Structured logging configuration."""

import logging
import sys
from typing import TextIO

import structlog
from structlog.typing import EventDict, WrappedLogger

from feedsync.transport.redact import REDACTED_VALUE, is_sensitive_header


SYNC_CONTEXT_KEYS = ("sync_id", "account_id")


def redact_sensitive_fields(
    _logger: WrappedLogger, _method_name: str, event_dict: EventDict
) -> EventDict:
    """Replace values of credential-bearing keys before rendering."""
    for key in event_dict:
        if is_sensitive_header(key.replace("_", "-")):
            event_dict[key] = REDACTED_VALUE
    return event_dict


def configure_logging(
    level: int = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Configure structured logging for the application.

    Sets up structlog with standard processors for context binding, log
    levels, timestamps and credential redaction, rendering either JSON lines
    or colored console output.

    Args:
        level: Logging level (default: INFO).
        output: Output stream (default: stderr).
        json_format: Whether to use JSON format (default: True).
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_sensitive_fields,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=output.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=True,
    )

    # httpx logs every request at INFO through the standard library
    logging.basicConfig(format="%(message)s", stream=output, level=level)
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a bound logger instance.

    Args:
        name: Optional logger name.

    Returns:
        Bound logger instance.
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


def bind_sync_context(sync_id: str, account_id: str | None = None) -> None:
    """Bind sync cycle context to all subsequent log messages.

    Args:
        sync_id: Unique identifier of the sync cycle.
        account_id: Account being synced.
    """
    context = {"sync_id": sync_id}
    if account_id is not None:
        context["account_id"] = account_id
    structlog.contextvars.bind_contextvars(**context)


def clear_sync_context() -> None:
    """Clear sync cycle context from log messages."""
    structlog.contextvars.unbind_contextvars(*SYNC_CONTEXT_KEYS)
