"""Operation queue dispatching ready operations onto a worker pool."""

import threading
from collections.abc import Sequence
from concurrent.futures import Executor, ThreadPoolExecutor

import structlog

from feedsync.operations.base import Operation


logger = structlog.get_logger()

DEFAULT_MAX_WORKERS = 4


class OperationQueue:
    """Runs operations on a bounded thread pool once their dependencies finish.

    Provides:
    - Dependency-ordered dispatch (dependencies may live on other queues)
    - No ordering among operations without declared dependencies
    - Cancellation of everything still queued or running
    - Nested queues sharing one executor (see CompoundOperation)
    """

    def __init__(
        self,
        name: str = "operations",
        max_workers: int = DEFAULT_MAX_WORKERS,
        executor: Executor | None = None,
    ) -> None:
        """Initialize the queue.

        Args:
            name: Queue name for logging and worker thread names.
            max_workers: Pool size when the queue creates its own executor.
            executor: Shared executor; the queue then never shuts it down.
        """
        self.name = name
        self._max_workers = max_workers
        self._executor = executor
        self._owns_executor = executor is None
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._operations: list[Operation] = []
        self._waiting: list[Operation] = []
        self._log = logger.bind(component="operations", queue=name)

    @property
    def executor(self) -> Executor:
        """The executor operations run on, created on first use."""
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix=self.name,
                )
            return self._executor

    @property
    def operation_count(self) -> int:
        """Number of operations added and not yet terminal."""
        with self._lock:
            return len(self._operations)

    @property
    def operations(self) -> tuple[Operation, ...]:
        """Operations added and not yet terminal."""
        with self._lock:
            return tuple(self._operations)

    def add_operation(self, operation: Operation) -> None:
        """Queue an operation.

        Args:
            operation: Operation to run once its dependencies are terminal.

        Raises:
            ValueError: If the operation is already queued.
        """
        with self._lock:
            if operation in self._operations:
                msg = f"Operation '{operation.display_name}' is already queued"
                raise ValueError(msg)
            self._operations.append(operation)
            self._waiting.append(operation)

        operation._enqueued_on(self)  # noqa: SLF001
        self._log.debug(
            "operation_added",
            operation=operation.display_name,
            dependency_count=len(operation.dependencies),
        )

        operation.add_completion_callback(self._operation_finished)
        for dependency in operation.dependencies:
            dependency.add_completion_callback(self._dependency_finished)

        self._dispatch_ready()

    def add_operations(
        self,
        operations: Sequence[Operation],
        wait_until_finished: bool = False,
    ) -> None:
        """Queue several operations.

        Args:
            operations: Operations to queue.
            wait_until_finished: Block until all of them are terminal. Do not
                use from a worker of the same executor.
        """
        for operation in operations:
            self.add_operation(operation)
        if wait_until_finished:
            for operation in operations:
                operation.wait()

    def cancel_all_operations(self) -> None:
        """Cancel every operation that is queued or running.

        Operations still waiting for dependencies are cancelled first, so
        cancelling a running dependency cannot dispatch them.
        """
        with self._lock:
            waiting = list(self._waiting)
            operations = waiting + [
                operation for operation in self._operations if operation not in waiting
            ]
        self._log.info("cancelling_operations", count=len(operations))
        for operation in operations:
            operation.cancel()

    def wait_until_all_finished(self, timeout: float | None = None) -> bool:
        """Block until every queued operation is terminal.

        Args:
            timeout: Seconds to wait at most, or None to wait indefinitely.

        Returns:
            True if the queue drained within the timeout.
        """
        with self._idle:
            return self._idle.wait_for(lambda: not self._operations, timeout)

    def shutdown(self, wait: bool = True) -> None:
        """Shut down the executor if this queue created it."""
        with self._lock:
            executor = self._executor if self._owns_executor else None
        if executor is not None:
            executor.shutdown(wait=wait)

    def _dispatch_ready(self) -> None:
        with self._lock:
            ready = [operation for operation in self._waiting if operation.is_ready]
            for operation in ready:
                self._waiting.remove(operation)

        for operation in ready:
            if operation.is_finished:
                continue
            self.executor.submit(operation.start)

    def _operation_finished(self, operation: Operation) -> None:
        with self._lock:
            if operation in self._operations:
                self._operations.remove(operation)
            if operation in self._waiting:
                self._waiting.remove(operation)
            if not self._operations:
                self._idle.notify_all()

        self._log.debug(
            "operation_finished",
            operation=operation.display_name,
            state=operation.state.value,
        )
        self._dispatch_ready()

    def _dependency_finished(self, _operation: Operation) -> None:
        self._dispatch_ready()
