"""State machine for operation lifecycles."""

import threading
from enum import Enum

import structlog


logger = structlog.get_logger()


class OperationState(str, Enum):
    """Lifecycle state of an operation.

    - PENDING: Created, waiting for dependencies or a worker
    - RUNNING: Its unit of work has started
    - SUCCEEDED: Finished without an error
    - FAILED: Finished with an error
    - CANCELLED: Cancelled before finishing
    """

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


TERMINAL_STATES = frozenset(
    {OperationState.SUCCEEDED, OperationState.FAILED, OperationState.CANCELLED}
)

# Valid state transitions
_VALID_TRANSITIONS: dict[OperationState, set[OperationState]] = {
    OperationState.PENDING: {OperationState.RUNNING, OperationState.CANCELLED},
    OperationState.RUNNING: {
        OperationState.SUCCEEDED,
        OperationState.FAILED,
        OperationState.CANCELLED,
    },
    OperationState.SUCCEEDED: set(),  # Terminal state
    OperationState.FAILED: set(),  # Terminal state
    OperationState.CANCELLED: set(),  # Terminal state
}


class OperationStateTransitionError(Exception):
    """Raised when an illegal state transition is attempted."""

    def __init__(
        self,
        operation_name: str,
        from_state: OperationState,
        to_state: OperationState,
    ) -> None:
        """Initialize the transition error.

        Args:
            operation_name: Name of the operation.
            from_state: Current state.
            to_state: Attempted target state.
        """
        self.operation_name = operation_name
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Illegal state transition for operation '{operation_name}': "
            f"{from_state.value} -> {to_state.value}"
        )


class OperationStateMachine:
    """Manages state transitions for one operation.

    Enforces valid transitions and logs all state changes. Thread-safe:
    cancel() may race with the worker finishing the operation.
    """

    def __init__(
        self,
        operation_name: str,
        initial_state: OperationState = OperationState.PENDING,
    ) -> None:
        """Initialize the state machine.

        Args:
            operation_name: Name of the operation, for logging.
            initial_state: Starting state.
        """
        self._operation_name = operation_name
        self._state = initial_state
        self._lock = threading.Lock()
        self._log = logger.bind(component="operations", operation=operation_name)

    @property
    def state(self) -> OperationState:
        """Get the current state."""
        with self._lock:
            return self._state

    @property
    def is_terminal(self) -> bool:
        """Check if current state is terminal."""
        return self.state in TERMINAL_STATES

    def can_transition_to(self, target: OperationState) -> bool:
        """Check if a transition to the target state is valid."""
        with self._lock:
            return target in _VALID_TRANSITIONS.get(self._state, set())

    def transition_to(self, target: OperationState) -> None:
        """Transition to a new state.

        Args:
            target: The target state.

        Raises:
            OperationStateTransitionError: If the transition is invalid.
        """
        if not self.try_transition_to(target):
            current = self.state
            self._log.error(
                "illegal_state_transition",
                from_state=current.value,
                to_state=target.value,
            )
            raise OperationStateTransitionError(
                operation_name=self._operation_name,
                from_state=current,
                to_state=target,
            )

    def try_transition_to(self, target: OperationState) -> bool:
        """Transition if valid, atomically.

        Args:
            target: The target state.

        Returns:
            True if the transition happened, False if it was not allowed.
        """
        with self._lock:
            old_state = self._state
            if target not in _VALID_TRANSITIONS.get(old_state, set()):
                return False
            self._state = target

        self._log.debug(
            "state_transition",
            from_state=old_state.value,
            to_state=target.value,
        )
        return True
