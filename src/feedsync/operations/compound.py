"""Compound operation: a group of operations finishing as one."""

import threading
from collections.abc import Callable, Sequence

import structlog

from feedsync.operations.base import BlockOperation, Operation
from feedsync.operations.queue import OperationQueue
from feedsync.operations.state_machine import OperationState


logger = structlog.get_logger()


class CompoundOperation(Operation):
    """Runs its child operations on a nested queue and finishes after all of them.

    The nested queue shares the executor of the queue the compound runs on,
    so children never need workers of their own. A synthetic final operation
    depends on every child and finishes the compound once they are all
    terminal. If any child failed, the compound fails with the error of the
    first child that failed.

    Cancelling the compound cancels every child, including children the
    nested queue has not picked up yet.
    """

    def __init__(
        self,
        operations: Sequence[Operation],
        name: str | None = None,
    ) -> None:
        """Initialize the compound operation.

        Args:
            operations: Children to run; dependencies among them are honored.
            name: Optional name used in logs.

        Raises:
            ValueError: If operations is empty.
        """
        if not operations:
            msg = "CompoundOperation requires at least one operation"
            raise ValueError(msg)
        super().__init__(name)
        self._operations = tuple(operations)
        self._children_lock = threading.Lock()
        self._operation_queue: OperationQueue | None = None

    @classmethod
    def from_block(
        cls,
        factory: Callable[[], Sequence[Operation]],
        name: str | None = None,
    ) -> "CompoundOperation":
        """Build a compound from a function returning its children."""
        return cls(factory(), name=name)

    @property
    def operations(self) -> tuple[Operation, ...]:
        """The child operations."""
        return self._operations

    @property
    def first_failed(self) -> Operation | None:
        """The child that failed first, if any.

        Read from the children themselves, so it is accurate as soon as the
        children are terminal, even while their completion callbacks run.
        """
        failed = [
            operation
            for operation in self._operations
            if operation.state == OperationState.FAILED
        ]
        if not failed:
            return None
        return min(failed, key=lambda operation: operation.finish_sequence or 0)

    @property
    def first_error(self) -> BaseException | None:
        """Error of the first child that failed, if any."""
        first_failed = self.first_failed
        return first_failed.error if first_failed is not None else None

    def run(self) -> None:
        outer_queue = self.queue
        executor = outer_queue.executor if outer_queue is not None else None
        operation_queue = OperationQueue(
            name=f"{self.display_name}-children",
            executor=executor,
        )
        with self._children_lock:
            self._operation_queue = operation_queue

        final_operation = BlockOperation(
            self._finish_from_children,
            name=f"{self.display_name}-final",
        )
        for operation in self._operations:
            final_operation.add_dependency(operation)

        self._log.debug("compound_started", child_count=len(self._operations))
        operation_queue.add_operations([*self._operations, final_operation])

    def cancel(self) -> None:
        with self._children_lock:
            operation_queue = self._operation_queue
        if operation_queue is not None:
            operation_queue.cancel_all_operations()
        for operation in self._operations:
            operation.cancel()
        super().cancel()
        if operation_queue is not None:
            operation_queue.shutdown(wait=False)

    def _finish_from_children(self) -> None:
        first_failed = self.first_failed
        if first_failed is not None:
            self._log.info(
                "compound_child_failed",
                child=first_failed.display_name,
                error_type=type(first_failed.error).__name__,
            )
            self.finish(first_failed.error)
        else:
            self.finish()
        with self._children_lock:
            operation_queue = self._operation_queue
        if operation_queue is not None:
            operation_queue.shutdown(wait=False)
