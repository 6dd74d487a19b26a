"""Feedly fetch operations.

Each operation makes one service call when it runs, keeps the result for
the operations that depend on it and finishes with the call's error if it
failed. Failures are logged at debug level only; reporting them is up to
whoever observes the operation's completion.
"""

import threading
from collections.abc import Sequence
from datetime import datetime

from feedsync.feedly.models import FeedlyCollection, FeedlyEntry
from feedsync.feedly.parser import FeedlyEntryParser
from feedsync.feedly.services import (
    EntryIdentifierProviding,
    GetCollectionsService,
    GetEntriesService,
    GetStreamIdsService,
)
from feedsync.operations.base import Operation
from feedsync.parser.models import ParsedItem
from feedsync.transport.errors import TransportError


class GetCollectionsOperation(Operation):
    """Fetches the user's collections."""

    def __init__(self, service: GetCollectionsService, name: str | None = None) -> None:
        super().__init__(name)
        self.service = service
        self.collections: list[FeedlyCollection] = []

    def run(self) -> None:
        self._log.debug("requesting_collections")
        try:
            collections = self.service.get_collections()
        except TransportError as e:
            self._log.debug("collections_request_failed", **e.to_dict())
            self.finish(e)
            return

        self._log.debug(
            "collections_received",
            collection_ids=[collection.collection_id for collection in collections],
        )
        self.collections = collections
        self.finish()


class GetStreamIdsOperation(Operation):
    """Fetches one page of entry ids of a stream."""

    def __init__(  # noqa: PLR0913
        self,
        service: GetStreamIdsService,
        resource: str,
        continuation: str | None = None,
        newer_than: datetime | None = None,
        unread_only: bool | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(name)
        self.service = service
        self.resource = resource
        self.request_continuation = continuation
        self.newer_than = newer_than
        self.unread_only = unread_only
        self.entry_ids: list[str] = []
        self.continuation: str | None = None

    def run(self) -> None:
        try:
            stream_ids = self.service.get_stream_ids(
                self.resource,
                continuation=self.request_continuation,
                newer_than=self.newer_than,
                unread_only=self.unread_only,
            )
        except TransportError as e:
            self._log.debug(
                "stream_ids_request_failed", resource=self.resource, **e.to_dict()
            )
            self.finish(e)
            return

        self.entry_ids = list(stream_ids.ids)
        self.continuation = stream_ids.continuation
        self._log.debug(
            "stream_ids_received",
            resource=self.resource,
            count=len(self.entry_ids),
            has_more=self.continuation is not None,
        )
        self.finish()


class GetEntriesOperation(Operation):
    """Fetches full entries for the ids of a provider.

    The provider is read when the operation runs, so it may be an operation
    this one depends on.
    """

    def __init__(
        self,
        service: GetEntriesService,
        provider: EntryIdentifierProviding,
        name: str | None = None,
    ) -> None:
        super().__init__(name)
        self.service = service
        self.provider = provider
        self.entries: list[FeedlyEntry] = []
        self._parse_lock = threading.Lock()
        self._parsed: tuple[frozenset[ParsedItem], frozenset[str]] | None = None

    @property
    def parsed_item_provider_name(self) -> str:
        return self.display_name

    @property
    def parsed_entries(self) -> frozenset[ParsedItem]:
        """The entries as ParsedItems, computed once the operation finished.

        Entries that cannot be represented (no origin feed) are left out;
        their ids are available from dropped_entry_ids.
        """
        return self._ensure_parsed()[0]

    @property
    def dropped_entry_ids(self) -> frozenset[str]:
        """Ids of entries left out of parsed_entries."""
        return self._ensure_parsed()[1]

    def run(self) -> None:
        entry_ids = self.provider.entry_ids
        try:
            entries = self.service.get_entries(entry_ids)
        except TransportError as e:
            self._log.debug("entries_request_failed", **e.to_dict())
            self.finish(e)
            return

        self.entries = entries
        self._log.debug(
            "entries_received", requested=len(entry_ids), count=len(entries)
        )
        self.finish()

    def _ensure_parsed(self) -> tuple[frozenset[ParsedItem], frozenset[str]]:
        if not self.is_finished:
            return frozenset(), frozenset()
        with self._parse_lock:
            if self._parsed is None:
                self._parsed = self._parse_entries()
            return self._parsed

    def _parse_entries(self) -> tuple[frozenset[ParsedItem], frozenset[str]]:
        parsed: set[ParsedItem] = set()
        dropped: set[str] = set()
        for entry in self.entries:
            item = FeedlyEntryParser(entry).parsed_item
            if item is None:
                dropped.add(entry.entry_id)
            else:
                parsed.add(item)

        if dropped:
            self._log.warning(
                "entries_dropped",
                count=len(dropped),
                entry_ids=sorted(dropped),
            )
        return frozenset(parsed), frozenset(dropped)


class StaticEntryIdentifierProvider:
    """Provides a fixed list of entry ids."""

    def __init__(self, entry_ids: Sequence[str]) -> None:
        self._entry_ids = list(entry_ids)

    @property
    def entry_ids(self) -> list[str]:
        return list(self._entry_ids)
