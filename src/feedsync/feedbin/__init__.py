"""Feedbin v2 API caller and wire models."""

from feedsync.feedbin.caller import FeedbinAPICaller, parse_tagging_location
from feedsync.feedbin.constants import ConditionalGetKeys
from feedsync.feedbin.models import (
    CreateSubscriptionOutcome,
    CreateSubscriptionResult,
    EntriesPage,
    FeedbinEntry,
    FeedbinImportResult,
    FeedbinSubscription,
    FeedbinSubscriptionChoice,
    FeedbinTag,
    FeedbinTagging,
)


__all__ = [
    "ConditionalGetKeys",
    "CreateSubscriptionOutcome",
    "CreateSubscriptionResult",
    "EntriesPage",
    "FeedbinAPICaller",
    "FeedbinEntry",
    "FeedbinImportResult",
    "FeedbinSubscription",
    "FeedbinSubscriptionChoice",
    "FeedbinTag",
    "FeedbinTagging",
    "parse_tagging_location",
]
