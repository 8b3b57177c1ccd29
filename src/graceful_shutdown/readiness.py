"""
Single-flight readiness evaluation.

Readiness checks establish that startup dependencies are reachable. They
run concurrently, at most one evaluation at a time, and only until they
succeed once: after the first successful evaluation the READY state is
cached for the lifetime of the process and no check runs again.

Example:
    >>> coordinator = ReadinessCoordinator(registry, state)
    >>> try:
    ...     await coordinator.evaluate(listener)
    ... except GracefulShutdownError:
    ...     ...  # not ready yet
"""

from __future__ import annotations

import logging
from typing import Any

from graceful_shutdown.callbacks import (
    NamedCallback,
    ReadinessRegistry,
    first_failure,
    run_concurrently,
)
from graceful_shutdown.exceptions import (
    AlreadyEvaluatingError,
    ReadinessCheckFailedError,
    TerminatingError,
)
from graceful_shutdown.observability import (
    ATTR_CALLBACK_COUNT,
    ATTR_CALLBACK_NAME,
    ATTR_OUTCOME,
    Tracer,
    create_tracer,
    record_readiness_evaluation,
)
from graceful_shutdown.state import LifecycleState

logger = logging.getLogger(__name__)


class ReadinessCoordinator:
    """
    Evaluates readiness checks with single-flight semantics.

    Handles:
    - Refusing evaluation once termination has begun
    - Returning immediately once READY has been reached
    - Rejecting concurrent evaluations (no queuing)
    - Fan-out of every check and fan-in of the first error

    The list of checks is captured from the registry on the first
    evaluation and reused by later attempts.
    """

    def __init__(
        self,
        registry: ReadinessRegistry,
        state: LifecycleState,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the coordinator.

        Args:
            registry: Registry holding the readiness checks
            state: Lifecycle state shared with the controller
            tracer: Optional custom Tracer instance
            enable_tracing: Whether to enable OpenTelemetry tracing.
                Ignored if tracer is explicitly provided.
        """
        self._registry = registry
        self._state = state
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._checks: list[NamedCallback] | None = None

    @property
    def checks(self) -> list[NamedCallback] | None:
        """Checks captured on first evaluation, or None before that."""
        return None if self._checks is None else list(self._checks)

    async def evaluate(self, listener: Any) -> None:
        """
        Run the readiness checks once, unless already READY.

        Args:
            listener: Listener handle passed to every check

        Raises:
            TerminatingError: If termination has begun
            AlreadyEvaluatingError: If an evaluation is already in flight
            ReadinessCheckFailedError: If any check failed
        """
        if self._state.is_terminating:
            raise TerminatingError(self._state.terminated_by)

        if self._state.is_ready:
            return

        if self._state.is_checking:
            raise AlreadyEvaluatingError()

        self._state.begin_readiness_check()

        if self._checks is None:
            self._checks = self._registry.list()

        succeeded = False
        with self._tracer.span(
            "graceful_shutdown.readiness.evaluate",
            {ATTR_CALLBACK_COUNT: len(self._checks)},
        ) as span:
            try:
                logger.info(
                    "server start up: running readiness checks",
                    extra={"check_count": len(self._checks)},
                )
                outcomes = await run_concurrently(self._checks, listener, kind=self._registry.kind)

                failure = first_failure(outcomes)
                if failure is not None:
                    name, error = failure
                    logger.info(
                        "server start up: readiness checks failed with error: %s",
                        error,
                        extra={"check": name},
                    )
                    if span:
                        span.set_attribute(ATTR_CALLBACK_NAME, name)
                    raise ReadinessCheckFailedError(name, error) from error

                succeeded = True
                logger.info("server start up: readiness checks all executed")
            finally:
                self._state.finish_readiness_check(succeeded)
                outcome = "ready" if succeeded else "not_ready"
                record_readiness_evaluation(outcome)
                if span:
                    span.set_attribute(ATTR_OUTCOME, outcome)


__all__ = [
    "ReadinessCoordinator",
]
