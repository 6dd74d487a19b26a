"""Service and provider protocols the Feedly operations are written against.

Services talk to Feedly; providers hand results from one operation to the
next. Operations depend on these protocols only, so tests can stub them.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol, runtime_checkable

from feedsync.feedly.models import FeedlyCollection, FeedlyEntry, FeedlyStreamIds
from feedsync.parser.models import ParsedItem


class GetCollectionsService(Protocol):
    def get_collections(self) -> list[FeedlyCollection]: ...


class GetEntriesService(Protocol):
    def get_entries(self, ids: Sequence[str]) -> list[FeedlyEntry]: ...


class GetStreamIdsService(Protocol):
    def get_stream_ids(
        self,
        resource: str,
        continuation: str | None = None,
        newer_than: datetime | None = None,
        unread_only: bool | None = None,
    ) -> FeedlyStreamIds: ...


@runtime_checkable
class CollectionProviding(Protocol):
    @property
    def collections(self) -> list[FeedlyCollection]: ...


@runtime_checkable
class EntryIdentifierProviding(Protocol):
    @property
    def entry_ids(self) -> list[str]: ...


@runtime_checkable
class EntryProviding(Protocol):
    @property
    def entries(self) -> list[FeedlyEntry]: ...


@runtime_checkable
class ParsedItemProviding(Protocol):
    @property
    def parsed_item_provider_name(self) -> str: ...

    @property
    def parsed_entries(self) -> frozenset[ParsedItem]: ...
