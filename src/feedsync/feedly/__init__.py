"""Feedly cloud API caller, entry parsing and fetch operations."""

from feedsync.feedly.caller import FEEDLY_BASE_URL, FeedlyAPICaller
from feedsync.feedly.models import (
    FeedlyCollection,
    FeedlyContent,
    FeedlyEntry,
    FeedlyFeed,
    FeedlyLink,
    FeedlyOrigin,
    FeedlyStreamIds,
    FeedlyTag,
)
from feedsync.feedly.operations import (
    GetCollectionsOperation,
    GetEntriesOperation,
    GetStreamIdsOperation,
    StaticEntryIdentifierProvider,
)
from feedsync.feedly.parser import FeedlyEntryParser
from feedsync.feedly.services import (
    CollectionProviding,
    EntryIdentifierProviding,
    EntryProviding,
    GetCollectionsService,
    GetEntriesService,
    GetStreamIdsService,
    ParsedItemProviding,
)


__all__ = [
    "FEEDLY_BASE_URL",
    "CollectionProviding",
    "EntryIdentifierProviding",
    "EntryProviding",
    "FeedlyAPICaller",
    "FeedlyCollection",
    "FeedlyContent",
    "FeedlyEntry",
    "FeedlyEntryParser",
    "FeedlyFeed",
    "FeedlyLink",
    "FeedlyOrigin",
    "FeedlyStreamIds",
    "FeedlyTag",
    "GetCollectionsOperation",
    "GetCollectionsService",
    "GetEntriesOperation",
    "GetEntriesService",
    "GetStreamIdsOperation",
    "GetStreamIdsService",
    "ParsedItemProviding",
    "StaticEntryIdentifierProvider",
]
