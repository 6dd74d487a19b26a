"""Observability module for logging."""

from feedsync.observability.logging import (
    bind_sync_context,
    clear_sync_context,
    configure_logging,
    get_logger,
)


__all__ = [
    "bind_sync_context",
    "clear_sync_context",
    "configure_logging",
    "get_logger",
]
