"""Unit tests for the Feedly fetch operations."""

import threading
from collections.abc import Iterator
from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from feedsync.feedly.models import FeedlyCollection, FeedlyEntry, FeedlyStreamIds
from feedsync.feedly.operations import (
    GetCollectionsOperation,
    GetEntriesOperation,
    GetStreamIdsOperation,
    StaticEntryIdentifierProvider,
)
from feedsync.feedly.services import EntryIdentifierProviding, ParsedItemProviding
from feedsync.operations.compound import CompoundOperation
from feedsync.operations.queue import OperationQueue
from feedsync.operations.state_machine import OperationState
from feedsync.transport.errors import HttpStatusError, NoDataError


TIMEOUT = 5
FEED_STREAM = "feed/https://example.com/feed"


def entry(entry_id: str, origin: bool = True) -> FeedlyEntry:
    data: dict[str, object] = {"id": entry_id, "title": entry_id}
    if origin:
        data["origin"] = {"streamId": FEED_STREAM}
    return FeedlyEntry.model_validate(data)


@pytest.fixture
def queue() -> Iterator[OperationQueue]:
    """An operation queue shut down after the test."""
    operation_queue = OperationQueue(name="feedly-test", max_workers=2)
    yield operation_queue
    operation_queue.shutdown()


class TestGetCollectionsOperation:
    """Tests for GetCollectionsOperation."""

    def test_keeps_collections(self) -> None:
        """Test that the result is available after success."""
        collections = [FeedlyCollection(id="c1", label="One")]
        service = MagicMock()
        service.get_collections.return_value = collections
        operation = GetCollectionsOperation(service)

        operation.start()

        assert operation.state == OperationState.SUCCEEDED
        assert operation.collections == collections

    def test_failure_finishes_with_error(self) -> None:
        """Test that the service error becomes the operation error."""
        error = HttpStatusError(500, url="https://cloud.feedly.com/v3/collections")
        service = MagicMock()
        service.get_collections.side_effect = error
        operation = GetCollectionsOperation(service)

        operation.start()

        assert operation.state == OperationState.FAILED
        assert operation.error is error
        assert operation.collections == []


class TestGetStreamIdsOperation:
    """Tests for GetStreamIdsOperation."""

    def test_passes_parameters_and_keeps_page(self) -> None:
        """Test the call arguments and the stored page."""
        newer_than = datetime(2024, 5, 1, tzinfo=UTC)
        service = MagicMock()
        service.get_stream_ids.return_value = FeedlyStreamIds(
            ids=("a", "b"), continuation="next"
        )
        operation = GetStreamIdsOperation(
            service,
            "stream",
            continuation="cursor",
            newer_than=newer_than,
            unread_only=True,
        )

        operation.start()

        service.get_stream_ids.assert_called_once_with(
            "stream", continuation="cursor", newer_than=newer_than, unread_only=True
        )
        assert operation.entry_ids == ["a", "b"]
        assert operation.continuation == "next"
        assert operation.request_continuation == "cursor"
        assert isinstance(operation, EntryIdentifierProviding)

    def test_failure_finishes_with_error(self) -> None:
        """Test that a failed call leaves no ids behind."""
        service = MagicMock()
        service.get_stream_ids.side_effect = NoDataError()
        operation = GetStreamIdsOperation(service, "stream")

        operation.start()

        assert isinstance(operation.error, NoDataError)
        assert operation.entry_ids == []


class TestGetEntriesOperation:
    """Tests for GetEntriesOperation."""

    def test_parses_entries(self) -> None:
        """Test the fetched and parsed entries."""
        service = MagicMock()
        service.get_entries.return_value = [entry("e1"), entry("e2")]
        operation = GetEntriesOperation(
            service, StaticEntryIdentifierProvider(["e1", "e2"]), name="entries"
        )

        operation.start()

        service.get_entries.assert_called_once_with(["e1", "e2"])
        assert {item.unique_id for item in operation.parsed_entries} == {"e1", "e2"}
        assert operation.dropped_entry_ids == frozenset()
        assert operation.parsed_item_provider_name == "entries"
        assert isinstance(operation, ParsedItemProviding)

    def test_entries_without_feed_are_dropped(self) -> None:
        """Test that unparseable entries are reported, not returned."""
        service = MagicMock()
        service.get_entries.return_value = [entry("e1"), entry("orphan", origin=False)]
        operation = GetEntriesOperation(
            service, StaticEntryIdentifierProvider(["e1", "orphan"])
        )

        operation.start()

        assert {item.unique_id for item in operation.parsed_entries} == {"e1"}
        assert operation.dropped_entry_ids == frozenset({"orphan"})

    def test_parsed_entries_computed_once(self) -> None:
        """Test that repeated reads return the same set."""
        service = MagicMock()
        service.get_entries.return_value = [entry("e1")]
        operation = GetEntriesOperation(service, StaticEntryIdentifierProvider(["e1"]))
        operation.start()

        assert operation.parsed_entries is operation.parsed_entries

    def test_parsed_entries_before_run_are_not_kept(self) -> None:
        """Test that reading entries early does not hide the fetched ones."""
        service = MagicMock()
        service.get_entries.return_value = [entry("e1")]
        operation = GetEntriesOperation(service, StaticEntryIdentifierProvider(["e1"]))

        assert operation.parsed_entries == frozenset()
        operation.start()

        assert {item.unique_id for item in operation.parsed_entries} == {"e1"}

    def test_failure_finishes_with_error(self) -> None:
        """Test that a failed call yields no entries."""
        service = MagicMock()
        service.get_entries.side_effect = HttpStatusError(403)
        operation = GetEntriesOperation(service, StaticEntryIdentifierProvider(["e1"]))

        operation.start()

        assert operation.state == OperationState.FAILED
        assert operation.parsed_entries == frozenset()


class TestFetchChain:
    """Tests for chaining the operations through a compound."""

    def test_entries_use_ids_from_dependency(self, queue: OperationQueue) -> None:
        """Test that GetEntries reads the ids its dependency fetched."""
        service = MagicMock()
        service.get_stream_ids.return_value = FeedlyStreamIds(ids=("e1", "e2"))
        service.get_entries.return_value = [entry("e1"), entry("e2")]
        get_ids = GetStreamIdsOperation(service, "stream")
        get_entries = GetEntriesOperation(service, get_ids)
        get_entries.add_dependency(get_ids)
        compound = CompoundOperation([get_entries, get_ids])

        queue.add_operation(compound)

        assert compound.wait(TIMEOUT) is True
        assert compound.state == OperationState.SUCCEEDED
        service.get_entries.assert_called_once_with(["e1", "e2"])
        assert len(get_entries.parsed_entries) == 2

    def test_chain_fails_with_first_error(self, queue: OperationQueue) -> None:
        """Test that a failed id fetch fails the compound."""
        error = HttpStatusError(401)
        service = MagicMock()
        service.get_stream_ids.side_effect = error
        service.get_entries.return_value = []
        get_ids = GetStreamIdsOperation(service, "stream")
        get_entries = GetEntriesOperation(service, get_ids)
        get_entries.add_dependency(get_ids)
        compound = CompoundOperation([get_ids, get_entries])

        queue.add_operation(compound)

        assert compound.wait(TIMEOUT) is True
        assert compound.error is error
        service.get_entries.assert_called_once_with([])

    def test_cancel_stops_pending_fetch(self, queue: OperationQueue) -> None:
        """Test that cancelling the compound skips the entries fetch."""
        started = threading.Event()
        release = threading.Event()

        def get_stream_ids(*_args: object, **_kwargs: object) -> FeedlyStreamIds:
            started.set()
            release.wait(TIMEOUT)
            return FeedlyStreamIds(ids=("e1",))

        service = MagicMock()
        service.get_stream_ids.side_effect = get_stream_ids
        get_ids = GetStreamIdsOperation(service, "stream")
        get_entries = GetEntriesOperation(service, get_ids)
        get_entries.add_dependency(get_ids)
        compound = CompoundOperation([get_ids, get_entries])
        queue.add_operation(compound)
        assert started.wait(TIMEOUT)

        compound.cancel()
        release.set()

        assert compound.wait(TIMEOUT) is True
        assert get_entries.state == OperationState.CANCELLED
        assert queue.wait_until_all_finished(TIMEOUT) is True
        service.get_entries.assert_not_called()
