"""
Four-phase shutdown pipeline.

This module provides:
- ShutdownPhase: Enum of pipeline phases
- ShutdownResult: Result of a graceful shutdown
- ShutdownPipeline: Runs the shutdown sequence and schedules process exit

The shutdown sequence:
1. Wait the grace period so the orchestrator can take the server out of
   the routing table after it starts reporting NOT-READY
2. Drain connections: stop accepting and wait for in-flight requests
3. Run finalizers concurrently
4. Schedule process exit with 128 + the signal's code

Phases never overlap. Errors in phases 2 and 3 are logged and recorded on
the result, but the exit phase is always reached.

Example:
    >>> pipeline = ShutdownPipeline(grace_period_seconds=5.0)
    >>> result = await pipeline.graceful_shutdown(listener, "SIGTERM", finalizers)
    >>> result.exit_code
    143
"""

from __future__ import annotations

import asyncio
import logging
import sys
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from graceful_shutdown.callbacks import NamedCallback, first_failure, run_concurrently
from graceful_shutdown.exceptions import FinalizerFailedError, InvalidConfigurationError
from graceful_shutdown.listener import ListenerHandle
from graceful_shutdown.observability import (
    ATTR_CALLBACK_COUNT,
    ATTR_CALLBACK_NAME,
    ATTR_ERROR_TYPE,
    ATTR_EXIT_CODE,
    ATTR_GRACE_PERIOD_MS,
    ATTR_OUTCOME,
    ATTR_PHASE,
    ATTR_SIGNAL,
    Tracer,
    create_tracer,
    record_shutdown_completed,
    record_shutdown_initiated,
)
from graceful_shutdown.signals import exit_code

logger = logging.getLogger(__name__)

PROCESS_EXIT_DELAY_SECONDS = 1.0
"""Time between scheduling and performing process exit, leaving room for a final log flush."""

ExitFunc = Callable[[int], Any]
DoneCallback = Callable[["ShutdownResult"], Any]


class ShutdownPhase(Enum):
    """
    Phases of the shutdown pipeline.

    1. IDLE: No shutdown in progress
    2. GRACE_PERIOD: Waiting for the routing layer to stop sending traffic
    3. DRAINING: Listener closed, waiting for in-flight requests
    4. FINALIZING: Running finalizers
    5. EXITING: Process exit has been scheduled
    """

    IDLE = "idle"
    GRACE_PERIOD = "grace_period"
    DRAINING = "draining"
    FINALIZING = "finalizing"
    EXITING = "exiting"


@dataclass(frozen=True)
class ShutdownResult:
    """
    Result of a graceful shutdown.

    Attributes:
        signal: Signal that triggered the shutdown
        exit_code: Exit code scheduled for the process
        duration_seconds: Time from shutdown start to exit scheduling
        finalizers_run: Names of the finalizers that were executed
        drain_error: Error message if draining failed, None otherwise
        finalizer_error: Error message of the first failing finalizer, None otherwise
    """

    signal: str
    exit_code: int
    duration_seconds: float
    finalizers_run: tuple[str, ...] = ()
    drain_error: str | None = None
    finalizer_error: str | None = None

    @property
    def clean(self) -> bool:
        """True if draining and every finalizer succeeded."""
        return self.drain_error is None and self.finalizer_error is None

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary representation of result
        """
        return {
            "signal": self.signal,
            "exit_code": self.exit_code,
            "duration_seconds": self.duration_seconds,
            "finalizers_run": list(self.finalizers_run),
            "drain_error": self.drain_error,
            "finalizer_error": self.finalizer_error,
            "clean": self.clean,
        }


class ShutdownPipeline:
    """
    Runs the graceful shutdown sequence for one listener.

    The pipeline borrows the listener handle and the finalizer list only for
    the duration of one ``graceful_shutdown()`` call.

    Attributes:
        grace_period_seconds: Time to wait before draining connections
        exit_delay_seconds: Time between scheduling and performing exit
    """

    def __init__(
        self,
        grace_period_seconds: float = 5.0,
        exit_delay_seconds: float = PROCESS_EXIT_DELAY_SECONDS,
        exit_func: ExitFunc = sys.exit,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            grace_period_seconds: Time to wait before draining connections
            exit_delay_seconds: Time between scheduling and performing exit
            exit_func: Called with the exit code to terminate the process
            tracer: Optional custom Tracer instance
            enable_tracing: Whether to enable OpenTelemetry tracing.
                Ignored if tracer is explicitly provided.

        Raises:
            InvalidConfigurationError: If a duration is negative
        """
        if grace_period_seconds < 0:
            raise InvalidConfigurationError(
                f"grace_period_seconds must be >= 0, got {grace_period_seconds}"
            )
        if exit_delay_seconds < 0:
            raise InvalidConfigurationError(
                f"exit_delay_seconds must be >= 0, got {exit_delay_seconds}"
            )

        self.grace_period_seconds = grace_period_seconds
        self.exit_delay_seconds = exit_delay_seconds
        self._exit_func = exit_func
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._phase = ShutdownPhase.IDLE
        self._exit_handle: asyncio.TimerHandle | None = None

    @property
    def phase(self) -> ShutdownPhase:
        """Current pipeline phase."""
        return self._phase

    async def graceful_shutdown(
        self,
        listener: ListenerHandle,
        signal: str,
        finalizers: Sequence[NamedCallback],
        on_done: DoneCallback | None = None,
    ) -> ShutdownResult:
        """
        Run the four shutdown phases in order.

        Args:
            listener: Listener to drain
            signal: Signal that triggered the shutdown
            finalizers: Finalizers to run after draining
            on_done: Optional callback invoked once with the result after
                exit has been scheduled

        Returns:
            ShutdownResult describing the shutdown
        """
        start_time = time.monotonic()
        record_shutdown_initiated(signal)

        logger.info(
            "invoke graceful shutdown after %dms caused by signal.",
            self.grace_period_seconds * 1000,
            extra={"signal": signal, "finalizer_count": len(finalizers)},
        )

        with self._tracer.span(
            "graceful_shutdown.pipeline",
            {
                ATTR_SIGNAL: signal,
                ATTR_GRACE_PERIOD_MS: int(self.grace_period_seconds * 1000),
            },
        ) as span:
            await self.wait_grace_period()
            drain_error = await self.drain_connections(listener)
            finalizer_error = await self.run_finalizers(listener, finalizers)
            code = self.destroy_process(signal)

            result = ShutdownResult(
                signal=signal,
                exit_code=code,
                duration_seconds=time.monotonic() - start_time,
                finalizers_run=tuple(entry.name for entry in finalizers),
                drain_error=str(drain_error) if drain_error is not None else None,
                finalizer_error=str(finalizer_error) if finalizer_error is not None else None,
            )

            outcome = "clean" if result.clean else "degraded"
            record_shutdown_completed(outcome, result.duration_seconds)
            if span:
                span.set_attribute(ATTR_EXIT_CODE, code)
                span.set_attribute(ATTR_OUTCOME, outcome)

        if on_done is not None:
            try:
                on_done(result)
            except Exception as e:
                logger.error(
                    "Shutdown done callback failed",
                    extra={"error": str(e)},
                    exc_info=True,
                )

        return result

    async def wait_grace_period(self) -> None:
        """Phase 1: wait so the cluster can remove the server from routing."""
        self._phase = ShutdownPhase.GRACE_PERIOD
        logger.info("wait grace period: enable cluster to remove pod from routing.")
        with self._tracer.span(
            "graceful_shutdown.wait_grace_period",
            {ATTR_PHASE: self._phase.value},
        ):
            await asyncio.sleep(self.grace_period_seconds)

    async def drain_connections(self, listener: ListenerHandle) -> Exception | None:
        """
        Phase 2: stop accepting connections and wait for pending requests.

        Returns:
            The drain error, if any. Errors are logged, never raised.
        """
        self._phase = ShutdownPhase.DRAINING
        logger.info("drain connections: close http listener and wait for pending requests.")
        with self._tracer.span(
            "graceful_shutdown.drain_connections",
            {ATTR_PHASE: self._phase.value},
        ) as span:
            try:
                await listener.drain()
            except Exception as e:
                logger.error(
                    "drain connections failed",
                    extra={"error": str(e)},
                    exc_info=True,
                )
                if span:
                    span.set_attribute(ATTR_ERROR_TYPE, type(e).__name__)
                return e
        return None

    async def run_finalizers(
        self,
        listener: ListenerHandle,
        finalizers: Sequence[NamedCallback],
    ) -> FinalizerFailedError | None:
        """
        Phase 3: run every finalizer concurrently.

        All finalizers run to completion even when one of them fails.

        Returns:
            FinalizerFailedError for the first failure, or None
        """
        self._phase = ShutdownPhase.FINALIZING
        logger.info("server shut down: execute finalizers")

        with self._tracer.span(
            "graceful_shutdown.run_finalizers",
            {ATTR_PHASE: self._phase.value, ATTR_CALLBACK_COUNT: len(finalizers)},
        ) as span:
            outcomes = await run_concurrently(finalizers, listener, kind="finalizer")
            logger.info("server shut down: finalizers all executed")

            failure = first_failure(outcomes)
            if failure is None:
                return None

            name, cause = failure
            error = FinalizerFailedError(name, cause)
            logger.error(
                "server shut down: finalizer failed",
                extra={"finalizer": name, "error": str(cause)},
                exc_info=cause,
            )
            if span:
                span.set_attribute(ATTR_CALLBACK_NAME, name)
            return error

    def destroy_process(self, signal: str) -> int:
        """
        Phase 4: schedule process exit after the exit delay.

        Never fails.

        Returns:
            The exit code that will be used
        """
        self._phase = ShutdownPhase.EXITING
        code = exit_code(signal)
        logger.info("server shut down: schedule process exit", extra={"exit_code": code})

        loop = asyncio.get_running_loop()
        self._exit_handle = loop.call_later(self.exit_delay_seconds, self._exit_func, code)
        return code

    def cancel_exit(self) -> bool:
        """
        Cancel a scheduled exit that has not happened yet.

        Returns:
            True if a pending exit was cancelled
        """
        if self._exit_handle is None or self._exit_handle.cancelled():
            return False
        self._exit_handle.cancel()
        self._exit_handle = None
        return True


__all__ = [
    "PROCESS_EXIT_DELAY_SECONDS",
    "ShutdownPhase",
    "ShutdownResult",
    "ShutdownPipeline",
]
