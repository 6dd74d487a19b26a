"""Unit tests for OperationQueue."""

import threading
from collections.abc import Iterator

import pytest

from feedsync.operations.base import BlockOperation
from feedsync.operations.queue import OperationQueue
from feedsync.operations.state_machine import OperationState


TIMEOUT = 5


@pytest.fixture
def queue() -> Iterator[OperationQueue]:
    """An operation queue shut down after the test."""
    operation_queue = OperationQueue(name="test-queue", max_workers=4)
    yield operation_queue
    operation_queue.shutdown()


class TestDispatch:
    """Tests for running queued operations."""

    def test_runs_operations(self, queue: OperationQueue) -> None:
        """Test that every queued operation runs."""
        ran: list[str] = []
        operations = [
            BlockOperation(lambda n=n: ran.append(n), name=n) for n in ("a", "b", "c")
        ]

        queue.add_operations(operations, wait_until_finished=True)

        assert sorted(ran) == ["a", "b", "c"]
        assert all(op.state == OperationState.SUCCEEDED for op in operations)
        assert queue.wait_until_all_finished(TIMEOUT) is True
        assert queue.operation_count == 0

    def test_dependency_runs_first(self, queue: OperationQueue) -> None:
        """Test that an operation waits for its dependencies."""
        order: list[str] = []
        release = threading.Event()
        first = BlockOperation(
            lambda: (release.wait(TIMEOUT), order.append("first")), name="first"
        )
        second = BlockOperation(lambda: order.append("second"), name="second")
        second.add_dependency(first)

        queue.add_operations([second, first])
        assert second.state == OperationState.PENDING
        release.set()

        assert queue.wait_until_all_finished(TIMEOUT) is True
        assert order == ["first", "second"]

    def test_failed_dependency_still_unblocks(self, queue: OperationQueue) -> None:
        """Test that a failed dependency counts as terminal."""

        def fail() -> None:
            raise RuntimeError("dependency failed")

        first = BlockOperation(fail)
        second = BlockOperation(lambda: None)
        second.add_dependency(first)

        queue.add_operations([first, second], wait_until_finished=True)

        assert first.state == OperationState.FAILED
        assert second.state == OperationState.SUCCEEDED

    def test_dependency_on_another_queue(self, queue: OperationQueue) -> None:
        """Test that dependencies may run on a different queue."""
        other = OperationQueue(name="other-queue", max_workers=1)
        release = threading.Event()
        first = BlockOperation(lambda: release.wait(TIMEOUT))
        second = BlockOperation(lambda: None)
        second.add_dependency(first)

        queue.add_operation(second)
        other.add_operation(first)
        assert second.state == OperationState.PENDING
        release.set()

        assert second.wait(TIMEOUT) is True
        assert second.state == OperationState.SUCCEEDED
        other.shutdown()

    def test_rejects_duplicate(self, queue: OperationQueue) -> None:
        """Test that an operation cannot be queued twice."""
        release = threading.Event()
        operation = BlockOperation(lambda: release.wait(TIMEOUT), name="dup")
        queue.add_operation(operation)

        with pytest.raises(ValueError, match="already queued"):
            queue.add_operation(operation)
        release.set()

    def test_operation_knows_its_queue(self, queue: OperationQueue) -> None:
        """Test that queued operations reference their queue."""
        operation = BlockOperation(lambda: None)

        queue.add_operation(operation)

        assert operation.queue is queue

    def test_runs_on_named_worker_threads(self, queue: OperationQueue) -> None:
        """Test that operations run on the queue's worker pool."""
        names: list[str] = []
        operation = BlockOperation(
            lambda: names.append(threading.current_thread().name)
        )

        queue.add_operation(operation)

        assert operation.wait(TIMEOUT) is True
        assert names[0].startswith("test-queue")


class TestCancellation:
    """Tests for cancel_all_operations()."""

    def test_cancels_running_and_waiting(self, queue: OperationQueue) -> None:
        """Test that queued and running operations are all cancelled."""
        started = threading.Event()
        release = threading.Event()
        ran_dependent: list[bool] = []

        def block() -> None:
            started.set()
            release.wait(TIMEOUT)

        running = BlockOperation(block, name="running")
        dependent = BlockOperation(lambda: ran_dependent.append(True))
        dependent.add_dependency(running)
        queue.add_operations([running, dependent])
        assert started.wait(TIMEOUT)

        queue.cancel_all_operations()
        release.set()

        assert queue.wait_until_all_finished(TIMEOUT) is True
        assert running.state == OperationState.CANCELLED
        assert dependent.state == OperationState.CANCELLED
        assert ran_dependent == []

    def test_wait_times_out(self, queue: OperationQueue) -> None:
        """Test that wait_until_all_finished honors its timeout."""
        release = threading.Event()
        queue.add_operation(BlockOperation(lambda: release.wait(TIMEOUT)))

        assert queue.wait_until_all_finished(0.01) is False
        release.set()
        assert queue.wait_until_all_finished(TIMEOUT) is True
