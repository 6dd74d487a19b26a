"""Unit tests for the operation state machine."""

import pytest

from feedsync.operations.state_machine import (
    TERMINAL_STATES,
    OperationState,
    OperationStateMachine,
    OperationStateTransitionError,
)


class TestOperationStateMachine:
    """Tests for OperationStateMachine."""

    def test_starts_pending(self) -> None:
        """Test the initial state."""
        machine = OperationStateMachine("op")

        assert machine.state == OperationState.PENDING
        assert machine.is_terminal is False

    @pytest.mark.parametrize(
        "path",
        [
            [OperationState.RUNNING, OperationState.SUCCEEDED],
            [OperationState.RUNNING, OperationState.FAILED],
            [OperationState.RUNNING, OperationState.CANCELLED],
            [OperationState.CANCELLED],
        ],
    )
    def test_valid_paths(self, path: list[OperationState]) -> None:
        """Test every lifecycle path ends in a terminal state."""
        machine = OperationStateMachine("op")

        for state in path:
            machine.transition_to(state)

        assert machine.state == path[-1]
        assert machine.is_terminal is True

    def test_cannot_finish_without_running(self) -> None:
        """Test that PENDING cannot jump to SUCCEEDED."""
        machine = OperationStateMachine("op")

        with pytest.raises(OperationStateTransitionError) as exc_info:
            machine.transition_to(OperationState.SUCCEEDED)

        assert exc_info.value.from_state == OperationState.PENDING
        assert exc_info.value.to_state == OperationState.SUCCEEDED
        assert "op" in str(exc_info.value)

    @pytest.mark.parametrize("terminal", sorted(TERMINAL_STATES))
    def test_terminal_states_are_final(self, terminal: OperationState) -> None:
        """Test that nothing leaves a terminal state."""
        machine = OperationStateMachine("op", initial_state=terminal)

        for target in OperationState:
            assert machine.can_transition_to(target) is False

    def test_try_transition_reports_failure(self) -> None:
        """Test that try_transition_to returns False instead of raising."""
        machine = OperationStateMachine("op", initial_state=OperationState.CANCELLED)

        assert machine.try_transition_to(OperationState.SUCCEEDED) is False
        assert machine.state == OperationState.CANCELLED
