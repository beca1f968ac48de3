"""
==============================================================================
Scanner State Tests
==============================================================================

Tests for the session state machine.

==============================================================================
"""

import pytest

from inventory_scanner.core.exceptions import InvalidState
from inventory_scanner.detection.state import TRANSITIONS, ScannerState, SessionState


ALLOWED = {
    (ScannerState.UNINITIALIZED, ScannerState.INITIALIZING),
    (ScannerState.UNINITIALIZED, ScannerState.READY),
    (ScannerState.INITIALIZING, ScannerState.READY),
    (ScannerState.INITIALIZING, ScannerState.UNINITIALIZED),
    (ScannerState.READY, ScannerState.STREAMING),
    (ScannerState.READY, ScannerState.UNINITIALIZED),
    (ScannerState.STREAMING, ScannerState.READY),
    (ScannerState.STREAMING, ScannerState.UNINITIALIZED),
}


class TestScannerState:
    """Tests for the ScannerState enum."""

    def test_ready_states(self):
        """Test only READY and STREAMING count as ready."""
        assert ScannerState.READY.is_ready
        assert ScannerState.STREAMING.is_ready
        assert not ScannerState.UNINITIALIZED.is_ready
        assert not ScannerState.INITIALIZING.is_ready

    def test_str(self):
        """Test string conversion returns the value."""
        assert str(ScannerState.STREAMING) == "streaming"


class TestTransitions:
    """Tests for the transition table."""

    def test_table_matches_lifecycle(self):
        """Test the table accepts exactly the lifecycle transitions."""
        table = {(src, dst) for src, targets in TRANSITIONS.items() for dst in targets}
        assert table == ALLOWED

    @pytest.mark.parametrize("src", list(ScannerState))
    @pytest.mark.parametrize("dst", list(ScannerState))
    def test_transition(self, src, dst):
        """Test transition() enforces the table."""
        state = SessionState()
        state._value = src

        if (src, dst) in ALLOWED:
            state.transition(dst)
            assert state.value == dst
        else:
            with pytest.raises(InvalidState):
                state.transition(dst)
            assert state.value == src

    def test_camera_path(self):
        """Test the full camera lifecycle."""
        state = SessionState()
        for target in (
            ScannerState.INITIALIZING,
            ScannerState.READY,
            ScannerState.STREAMING,
            ScannerState.READY,
            ScannerState.UNINITIALIZED,
        ):
            state.transition(target)
        assert state.value == ScannerState.UNINITIALIZED

    def test_invalid_transition_message(self):
        """Test the error names both states."""
        state = SessionState()
        with pytest.raises(InvalidState) as exc_info:
            state.transition(ScannerState.STREAMING)
        assert exc_info.value.message == (
            "Invalid scanner state transition: uninitialized -> streaming"
        )

    def test_reset(self):
        """Test reset returns to UNINITIALIZED from anywhere."""
        state = SessionState()
        state.transition(ScannerState.READY)
        state.transition(ScannerState.STREAMING)

        state.reset()

        assert state.value == ScannerState.UNINITIALIZED
