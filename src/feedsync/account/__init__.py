"""Account-scoped state shared with the API callers."""

from feedsync.account.metadata import AccountMetadata


__all__ = ["AccountMetadata"]
