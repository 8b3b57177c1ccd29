"""
Lifecycle state context shared by probes, the signal binder and the pipeline.

One LifecycleState is owned by each GracefulShutdown controller and is
injected wherever probes are wired up. All mutation happens on the event
loop thread, so no lock is needed; transitions are nevertheless monotonic:
once termination has begun the state never returns to RUNNING, and a READY
readiness state is never left.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class LifecyclePhase(Enum):
    """
    Process lifecycle phases.

    The lifecycle follows these phases:
    1. RUNNING: Serving traffic, no termination requested
    2. TERMINATING: A termination signal has been received
    3. TERMINATED: The exit phase has been scheduled
    """

    RUNNING = "running"
    """Serving traffic, no termination requested."""

    TERMINATING = "terminating"
    """A termination signal has been received."""

    TERMINATED = "terminated"
    """The shutdown pipeline has scheduled process exit."""


class ReadinessState(Enum):
    """
    Readiness evaluation state.

    NOT_CHECKED -> CHECKING -> READY (terminal), or CHECKING -> NOT_CHECKED
    when a check fails so that a later probe may retry.
    """

    NOT_CHECKED = "not_checked"
    CHECKING = "checking"
    READY = "ready"


@dataclass
class LifecycleState:
    """
    Mutable lifecycle and readiness state of one server.

    Attributes:
        phase: Current lifecycle phase
        terminated_by: Name of the signal that started termination, set once
        readiness: Current readiness evaluation state
    """

    phase: LifecyclePhase = LifecyclePhase.RUNNING
    terminated_by: str | None = None
    readiness: ReadinessState = field(default=ReadinessState.NOT_CHECKED)

    @property
    def is_terminating(self) -> bool:
        """True once termination has begun, including after it completed."""
        return self.phase is not LifecyclePhase.RUNNING

    @property
    def is_terminated(self) -> bool:
        return self.phase is LifecyclePhase.TERMINATED

    @property
    def is_ready(self) -> bool:
        return self.readiness is ReadinessState.READY

    @property
    def is_checking(self) -> bool:
        return self.readiness is ReadinessState.CHECKING

    def begin_termination(self, signal: str) -> bool:
        """
        Transition to TERMINATING and record the triggering signal.

        Args:
            signal: Name of the signal that requested termination

        Returns:
            True if this call started termination, False if it had
            already begun (the recorded signal is left untouched)
        """
        if self.is_terminating:
            return False

        self.phase = LifecyclePhase.TERMINATING
        self.terminated_by = signal
        logger.info("Termination requested", extra={"signal": signal})
        return True

    def mark_terminated(self) -> None:
        """Transition to TERMINATED. Only valid after termination has begun."""
        if not self.is_terminating:
            raise RuntimeError("cannot mark a running server as terminated")
        self.phase = LifecyclePhase.TERMINATED

    def begin_readiness_check(self) -> None:
        if self.readiness is ReadinessState.NOT_CHECKED:
            self.readiness = ReadinessState.CHECKING

    def finish_readiness_check(self, succeeded: bool) -> None:
        if self.readiness is ReadinessState.CHECKING:
            self.readiness = ReadinessState.READY if succeeded else ReadinessState.NOT_CHECKED

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "phase": self.phase.value,
            "terminated_by": self.terminated_by,
            "readiness": self.readiness.value,
        }


__all__ = [
    "LifecyclePhase",
    "ReadinessState",
    "LifecycleState",
]
