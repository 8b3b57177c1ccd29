"""
Unit tests for the lifecycle state context.
"""

import pytest

from graceful_shutdown.state import LifecyclePhase, LifecycleState, ReadinessState


class TestLifecycleStateDefaults:
    """Tests for a fresh LifecycleState."""

    def test_initial_state(self):
        """A new state is running and not checked."""
        state = LifecycleState()

        assert state.phase is LifecyclePhase.RUNNING
        assert state.readiness is ReadinessState.NOT_CHECKED
        assert state.terminated_by is None
        assert not state.is_terminating
        assert not state.is_terminated
        assert not state.is_ready
        assert not state.is_checking


class TestTermination:
    """Tests for termination transitions."""

    def test_begin_termination_records_signal(self):
        """The first termination request wins."""
        state = LifecycleState()

        assert state.begin_termination("SIGTERM") is True

        assert state.phase is LifecyclePhase.TERMINATING
        assert state.terminated_by == "SIGTERM"
        assert state.is_terminating

    def test_second_termination_is_ignored(self):
        """A second request leaves the recorded signal untouched."""
        state = LifecycleState()
        state.begin_termination("SIGTERM")

        assert state.begin_termination("SIGINT") is False
        assert state.terminated_by == "SIGTERM"

    def test_mark_terminated(self):
        """TERMINATED counts as terminating."""
        state = LifecycleState()
        state.begin_termination("SIGTERM")

        state.mark_terminated()

        assert state.is_terminated
        assert state.is_terminating
        assert state.begin_termination("SIGTERM") is False
        assert state.phase is LifecyclePhase.TERMINATED

    def test_mark_terminated_requires_termination(self):
        """A running state cannot jump to TERMINATED."""
        with pytest.raises(RuntimeError):
            LifecycleState().mark_terminated()


class TestReadinessTransitions:
    """Tests for readiness evaluation transitions."""

    def test_successful_check_reaches_ready(self):
        """CHECKING moves to READY on success."""
        state = LifecycleState()

        state.begin_readiness_check()
        assert state.is_checking

        state.finish_readiness_check(succeeded=True)
        assert state.is_ready

    def test_failed_check_allows_retry(self):
        """CHECKING moves back to NOT_CHECKED on failure."""
        state = LifecycleState()

        state.begin_readiness_check()
        state.finish_readiness_check(succeeded=False)

        assert state.readiness is ReadinessState.NOT_CHECKED

    def test_ready_is_terminal(self):
        """READY is never left."""
        state = LifecycleState(readiness=ReadinessState.READY)

        state.begin_readiness_check()
        state.finish_readiness_check(succeeded=False)

        assert state.is_ready

    def test_to_dict(self):
        """State serializes to plain values."""
        state = LifecycleState()
        state.begin_termination("SIGTERM")

        assert state.to_dict() == {
            "phase": "terminating",
            "terminated_by": "SIGTERM",
            "readiness": "not_checked",
        }
