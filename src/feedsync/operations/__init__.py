"""Composable units of work for sync cycles.

This package provides:
- Operation: a cancellable unit of work with dependencies
- OperationQueue: dependency-ordered dispatch onto a worker pool
- CompoundOperation: a dependency graph finishing as one operation
"""

from feedsync.operations.base import BlockOperation, CompletionCallback, Operation
from feedsync.operations.compound import CompoundOperation
from feedsync.operations.queue import OperationQueue
from feedsync.operations.state_machine import (
    TERMINAL_STATES,
    OperationState,
    OperationStateMachine,
    OperationStateTransitionError,
)


__all__ = [
    "TERMINAL_STATES",
    "BlockOperation",
    "CompletionCallback",
    "CompoundOperation",
    "Operation",
    "OperationQueue",
    "OperationState",
    "OperationStateMachine",
    "OperationStateTransitionError",
]
