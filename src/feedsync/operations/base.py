"""Base operation type: a cancellable unit of work with dependencies."""

import itertools
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING

import structlog

from feedsync.operations.state_machine import (
    TERMINAL_STATES,
    OperationState,
    OperationStateMachine,
    OperationStateTransitionError,
)


if TYPE_CHECKING:
    from feedsync.operations.queue import OperationQueue


logger = structlog.get_logger()

CompletionCallback = Callable[["Operation"], None]

# Orders finish() calls across all operations
_finish_counter = itertools.count()


class Operation:
    """A unit of work run by an OperationQueue.

    Subclasses override run(), which executes on a worker thread and must
    eventually call finish() exactly once, either before returning or later
    from another thread. finish() is idempotent: calls after the operation
    reached a terminal state are ignored. An exception escaping run()
    finishes the operation with that exception as its error.

    The operation becomes eligible to run once every dependency is
    terminal (succeeded, failed or cancelled). Completion callbacks fire
    exactly once, for whichever terminal state is reached first.
    """

    def __init__(self, name: str | None = None) -> None:
        """Initialize the operation.

        Args:
            name: Optional name used in logs.
        """
        self.name = name
        self._state_machine = OperationStateMachine(self.display_name)
        self._lock = threading.Lock()
        self._dependencies: list[Operation] = []
        self._callbacks: list[CompletionCallback] = []
        self._error: BaseException | None = None
        self._finish_sequence: int | None = None
        self._done = threading.Event()
        self._queue: OperationQueue | None = None
        self._log = logger.bind(component="operations", operation=self.display_name)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.display_name!r} {self.state.value}>"

    @property
    def display_name(self) -> str:
        """The name, or the class name for unnamed operations."""
        return self.name or type(self).__name__

    # State

    @property
    def state(self) -> OperationState:
        """Current lifecycle state."""
        return self._state_machine.state

    @property
    def is_finished(self) -> bool:
        """Whether the operation reached a terminal state."""
        return self.state in TERMINAL_STATES

    @property
    def is_cancelled(self) -> bool:
        """Whether the operation was cancelled."""
        return self.state == OperationState.CANCELLED

    @property
    def is_executing(self) -> bool:
        """Whether run() has started and finish() was not called yet."""
        return self.state == OperationState.RUNNING

    @property
    def error(self) -> BaseException | None:
        """The error the operation failed with, if any."""
        with self._lock:
            return self._error

    @property
    def finish_sequence(self) -> int | None:
        """Position of this operation's finish() among all finished operations.

        Set when finish() moves the operation to SUCCEEDED or FAILED, before
        any completion callback runs. None otherwise.
        """
        with self._lock:
            return self._finish_sequence

    @property
    def queue(self) -> "OperationQueue | None":
        """The queue this operation was added to."""
        return self._queue

    # Dependencies

    @property
    def dependencies(self) -> tuple["Operation", ...]:
        """Operations that must be terminal before this one runs."""
        with self._lock:
            return tuple(self._dependencies)

    def add_dependency(self, operation: "Operation") -> None:
        """Make this operation wait for another one.

        Args:
            operation: The operation to wait for.

        Raises:
            ValueError: If the operation would depend on itself.
        """
        if operation is self:
            msg = f"Operation '{self.display_name}' cannot depend on itself"
            raise ValueError(msg)
        with self._lock:
            if operation not in self._dependencies:
                self._dependencies.append(operation)

    def remove_dependency(self, operation: "Operation") -> None:
        """Stop waiting for an operation."""
        with self._lock:
            if operation in self._dependencies:
                self._dependencies.remove(operation)

    @property
    def is_ready(self) -> bool:
        """Whether every dependency is terminal."""
        return all(dependency.is_finished for dependency in self.dependencies)

    # Completion

    def add_completion_callback(self, callback: CompletionCallback) -> None:
        """Register a callback invoked once the operation is terminal.

        If the operation is already terminal the callback runs immediately
        on the calling thread.
        """
        with self._lock:
            if not self._state_machine.is_terminal:
                self._callbacks.append(callback)
                return
        self._invoke(callback)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the operation is terminal.

        Args:
            timeout: Seconds to wait at most, or None to wait indefinitely.

        Returns:
            True if the operation is terminal.
        """
        return self._done.wait(timeout)

    # Lifecycle

    def start(self) -> None:
        """Run the operation on the current thread.

        Called by the queue's worker. Does nothing if the operation was
        cancelled before a worker picked it up.
        """
        if not self._state_machine.try_transition_to(OperationState.RUNNING):
            self._log.debug("operation_skipped", state=self.state.value)
            return

        self._log.debug("operation_started")
        try:
            self.run()
        except Exception as e:  # noqa: BLE001
            self._log.warning(
                "operation_raised",
                error_type=type(e).__name__,
                error=str(e),
            )
            self.finish(e)

    def run(self) -> None:
        """Perform the unit of work and call finish()."""
        raise NotImplementedError

    def finish(self, error: BaseException | None = None) -> None:
        """Report that the unit of work is done.

        Args:
            error: The failure, or None on success.

        Raises:
            OperationStateTransitionError: If the operation never started.
        """
        if error is not None:
            target = OperationState.FAILED
        else:
            target = OperationState.SUCCEEDED

        with self._lock:
            finished = self._state_machine.try_transition_to(target)
            if finished:
                self._error = error
                self._finish_sequence = next(_finish_counter)
        if not finished:
            state = self.state
            if state == OperationState.PENDING:
                raise OperationStateTransitionError(self.display_name, state, target)
            self._log.debug("finish_ignored", state=state.value)
            return

        if error is not None:
            self._log.info(
                "operation_failed",
                error_type=type(error).__name__,
                error=str(error),
            )
        else:
            self._log.debug("operation_succeeded")
        self._notify()

    def cancel(self) -> None:
        """Cancel the operation.

        A pending operation will not run; a running one is marked cancelled
        and its later finish() is ignored. Cancelling a terminal operation
        does nothing.
        """
        with self._lock:
            cancelled = self._state_machine.try_transition_to(OperationState.CANCELLED)
        if cancelled:
            self._log.info("operation_cancelled")
            self._notify()

    # Private

    def _enqueued_on(self, queue: "OperationQueue") -> None:
        self._queue = queue

    def _notify(self) -> None:
        self._done.set()
        with self._lock:
            callbacks = list(self._callbacks)
            self._callbacks.clear()
        for callback in callbacks:
            self._invoke(callback)

    def _invoke(self, callback: CompletionCallback) -> None:
        try:
            callback(self)
        except Exception as e:  # noqa: BLE001
            self._log.error(
                "completion_callback_error",
                error_type=type(e).__name__,
                error=str(e),
            )


class BlockOperation(Operation):
    """An operation that calls a function and then finishes."""

    def __init__(self, block: Callable[[], None], name: str | None = None) -> None:
        super().__init__(name)
        self._block = block

    def run(self) -> None:
        self._block()
        self.finish()
