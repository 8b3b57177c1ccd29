"""
Graceful shutdown facade.

GracefulShutdown owns the shutdown options, the finalizer and readiness
registries, the lifecycle state and the shutdown pipeline. It exposes the
liveness and readiness probe handlers and the ``terminate`` entry point
used by the signal binder.

Example:
    >>> graceful = GracefulShutdown(
    ...     ServerListener(server),
    ...     {"grace_period_milliseconds": 10_000},
    ... )
    >>> graceful.add_finalizer("close_pool", close_pool)
    >>> graceful.add_readiness_check("database", ping_database)
    >>> response = await graceful.readiness()
    >>> response.status_code
    200
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from graceful_shutdown.callbacks import (
    CallbackFunc,
    FinalizerRegistry,
    NamedCallback,
    ReadinessRegistry,
)
from graceful_shutdown.config import ShutdownOptions
from graceful_shutdown.exceptions import GracefulShutdownError, InvalidConfigurationError
from graceful_shutdown.killer import DoneCallback, ShutdownPipeline, ShutdownResult
from graceful_shutdown.listener import ListenerHandle
from graceful_shutdown.observability import Tracer
from graceful_shutdown.probes import LIVE, NOT_READY, READY, ProbeResponse
from graceful_shutdown.readiness import ReadinessCoordinator
from graceful_shutdown.signals import normalize_signal_name
from graceful_shutdown.state import LifecycleState

logger = logging.getLogger(__name__)


class GracefulShutdown:
    """
    Lifecycle controller for one listener.

    Handles:
    - Liveness and readiness probes
    - Finalizer and readiness check registration
    - Delegating termination to the shutdown pipeline

    Attributes:
        listener: The listener handle being managed
        options: Validated shutdown options
        state: Lifecycle state shared with probes and the signal binder
        pipeline: Pipeline executing the shutdown sequence
    """

    def __init__(
        self,
        listener: ListenerHandle,
        options: ShutdownOptions | Mapping[str, Any] | None = None,
        *,
        pipeline: ShutdownPipeline | None = None,
        state: LifecycleState | None = None,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the controller.

        Args:
            listener: Listener handle to drain at shutdown
            options: ShutdownOptions or a mapping of option values
            pipeline: Optional pipeline replacing the default one
            state: Optional lifecycle state, for sharing with other components
            tracer: Optional custom Tracer instance
            enable_tracing: Whether to enable OpenTelemetry tracing.
                Ignored if tracer is explicitly provided.

        Raises:
            InvalidConfigurationError: If options or pipeline are invalid
        """
        self._options = ShutdownOptions.create(options)

        if pipeline is None:
            pipeline = ShutdownPipeline(
                grace_period_seconds=self._options.grace_period_seconds,
                tracer=tracer,
                enable_tracing=enable_tracing,
            )
        elif not isinstance(pipeline, ShutdownPipeline):
            raise InvalidConfigurationError(
                f"pipeline has to be an instance of ShutdownPipeline, got {type(pipeline).__name__}"
            )

        self._listener = listener
        self._pipeline = pipeline
        self._state = state or LifecycleState()
        self._finalizers = FinalizerRegistry(self._options.finalizers)
        self._readiness_checks = ReadinessRegistry(self._options.readiness_checks)
        self._coordinator = ReadinessCoordinator(
            self._readiness_checks,
            self._state,
            tracer=tracer,
            enable_tracing=enable_tracing,
        )

    @property
    def listener(self) -> ListenerHandle:
        return self._listener

    @property
    def options(self) -> ShutdownOptions:
        return self._options

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def pipeline(self) -> ShutdownPipeline:
        return self._pipeline

    @property
    def grace_period_seconds(self) -> float:
        """Effective grace period, after the environment override."""
        return self._options.grace_period_seconds

    @property
    def delay_seconds(self) -> float:
        """Delay between a signal and the start of the shutdown sequence."""
        return self._options.delay_seconds

    def liveness(self) -> ProbeResponse:
        """Report that the process is alive. Always 200 OK."""
        return LIVE

    async def readiness(self) -> ProbeResponse:
        """
        Report whether the server may receive traffic.

        Returns:
            200 READY once every readiness check has succeeded, 503 NOT-READY
            while checks fail, while another evaluation is in flight, or as
            soon as termination has begun
        """
        if self._state.is_terminating:
            # service has been terminated by an external signal; this
            # condition is mandatory and wins over a cached READY state
            return NOT_READY

        if self._state.is_ready:
            return READY

        try:
            await self._coordinator.evaluate(self._listener)
        except GracefulShutdownError as e:
            logger.debug("Readiness probe failed", extra={"error": str(e)})
            return NOT_READY

        return READY

    def add_finalizer(self, name: str, fn: CallbackFunc) -> bool:
        """
        Register a function executed at the end of the shutdown sequence.

        Args:
            name: Unique name of the finalizer
            fn: Callable taking the listener; may be async

        Returns:
            True if added, False if the name was already registered

        Raises:
            InvalidCallbackError: If the name is empty or fn is not callable
        """
        return self._finalizers.add(name, fn)

    def list_finalizers(self) -> list[str]:
        """Return the names of the registered finalizers in registration order."""
        return self._finalizers.names()

    def finalizers(self) -> list[NamedCallback]:
        """Return a copy of the registered finalizers."""
        return self._finalizers.list()

    def add_readiness_check(self, name: str, fn: CallbackFunc) -> bool:
        """
        Register a function executed at startup to establish readiness.

        Args:
            name: Unique name of the check
            fn: Callable taking the listener; may be async

        Returns:
            True if added, False if the name was already registered

        Raises:
            InvalidCallbackError: If the name is empty or fn is not callable
        """
        return self._readiness_checks.add(name, fn)

    def list_readiness_checks(self) -> list[str]:
        """Return the names of the registered readiness checks in registration order."""
        return self._readiness_checks.names()

    def readiness_checks(self) -> list[NamedCallback]:
        """Return a copy of the registered readiness checks."""
        return self._readiness_checks.list()

    async def check_readiness(self) -> None:
        """
        Run the readiness checks directly, raising on failure.

        Raises:
            TerminatingError: If termination has begun
            AlreadyEvaluatingError: If an evaluation is already in flight
            ReadinessCheckFailedError: If any check failed
        """
        await self._coordinator.evaluate(self._listener)

    async def terminate(
        self,
        signal: str,
        on_done: DoneCallback | None = None,
    ) -> ShutdownResult:
        """
        Run the shutdown pipeline with a snapshot of the current finalizers.

        Args:
            signal: Signal that triggered the shutdown
            on_done: Optional callback invoked once exit has been scheduled

        Returns:
            ShutdownResult describing the shutdown
        """
        signal = normalize_signal_name(signal)
        self._state.begin_termination(signal)

        result = await self._pipeline.graceful_shutdown(
            self._listener,
            signal,
            self._finalizers.list(),
            on_done=on_done,
        )
        self._state.mark_terminated()
        return result

    def __repr__(self) -> str:
        return (
            f"GracefulShutdown(listener={self._listener!r}, "
            f"phase={self._state.phase.value}, "
            f"finalizers={self.list_finalizers()}, "
            f"readiness_checks={self.list_readiness_checks()})"
        )


__all__ = [
    "GracefulShutdown",
]
