"""
OpenTelemetry metrics for shutdown and readiness.

Instruments are created lazily on first use under the
"graceful_shutdown" meter. Every recorder is safe to call when
OpenTelemetry is not installed or no MeterProvider is configured.

Instruments:
- graceful_shutdown.shutdown.initiated_total (counter)
- graceful_shutdown.shutdown.completed_total (counter, by outcome)
- graceful_shutdown.shutdown.duration_seconds (histogram, by outcome)
- graceful_shutdown.shutdown.forced_total (counter)
- graceful_shutdown.readiness.evaluations_total (counter, by outcome)
"""

from __future__ import annotations

from typing import Any

from graceful_shutdown.observability.attributes import ATTR_OUTCOME, ATTR_SIGNAL

# Optional OpenTelemetry import - graceful degradation when not available
try:
    from opentelemetry import metrics as otel_metrics

    OTEL_METRICS_AVAILABLE = True
except ImportError:
    OTEL_METRICS_AVAILABLE = False
    otel_metrics = None  # type: ignore[assignment]


# Module-level meter and instruments - lazy initialization
_meter: Any = None
_shutdown_initiated_counter: Any = None
_shutdown_completed_counter: Any = None
_shutdown_duration_histogram: Any = None
_forced_exit_counter: Any = None
_readiness_evaluations_counter: Any = None


def _get_meter() -> Any:
    global _meter
    if _meter is None and OTEL_METRICS_AVAILABLE and otel_metrics is not None:
        _meter = otel_metrics.get_meter("graceful_shutdown", version="1.0.0")
    return _meter


def _init_metrics() -> None:
    """
    Initialize metric instruments if not already done.

    Safe to call multiple times - instruments are only created once.
    """
    global _shutdown_initiated_counter, _shutdown_completed_counter
    global _shutdown_duration_histogram, _forced_exit_counter
    global _readiness_evaluations_counter

    meter = _get_meter()
    if meter is None:
        return

    if _shutdown_initiated_counter is None:
        _shutdown_initiated_counter = meter.create_counter(
            name="graceful_shutdown.shutdown.initiated_total",
            unit="1",
            description="Total number of graceful shutdowns initiated",
        )

    if _shutdown_completed_counter is None:
        _shutdown_completed_counter = meter.create_counter(
            name="graceful_shutdown.shutdown.completed_total",
            unit="1",
            description="Total number of graceful shutdowns that reached the exit phase",
        )

    if _shutdown_duration_histogram is None:
        _shutdown_duration_histogram = meter.create_histogram(
            name="graceful_shutdown.shutdown.duration_seconds",
            unit="s",
            description="Duration from shutdown start to exit scheduling in seconds",
        )

    if _forced_exit_counter is None:
        _forced_exit_counter = meter.create_counter(
            name="graceful_shutdown.shutdown.forced_total",
            unit="1",
            description="Total number of forced exits caused by a repeated signal",
        )

    if _readiness_evaluations_counter is None:
        _readiness_evaluations_counter = meter.create_counter(
            name="graceful_shutdown.readiness.evaluations_total",
            unit="1",
            description="Total number of readiness check evaluations",
        )


def record_shutdown_initiated(signal: str) -> None:
    """Record that a graceful shutdown has been initiated."""
    _init_metrics()
    if _shutdown_initiated_counter is not None:
        _shutdown_initiated_counter.add(1, {ATTR_SIGNAL: signal})


def record_shutdown_completed(outcome: str, duration_seconds: float) -> None:
    """
    Record a shutdown that reached the exit phase.

    Args:
        outcome: "clean" when every phase succeeded, "degraded" otherwise
        duration_seconds: Time from shutdown start to exit scheduling
    """
    _init_metrics()

    if _shutdown_completed_counter is not None:
        _shutdown_completed_counter.add(1, {ATTR_OUTCOME: outcome})

    if _shutdown_duration_histogram is not None:
        _shutdown_duration_histogram.record(duration_seconds, {ATTR_OUTCOME: outcome})


def record_forced_exit(signal: str) -> None:
    """Record a forced exit caused by a repeated termination signal."""
    _init_metrics()
    if _forced_exit_counter is not None:
        _forced_exit_counter.add(1, {ATTR_SIGNAL: signal})


def record_readiness_evaluation(outcome: str) -> None:
    """Record a readiness evaluation; outcome is "ready" or "not_ready"."""
    _init_metrics()
    if _readiness_evaluations_counter is not None:
        _readiness_evaluations_counter.add(1, {ATTR_OUTCOME: outcome})


def reset_metrics() -> None:
    """
    Reset the metrics state.

    Useful for testing to ensure clean state between tests.
    """
    global _meter, _shutdown_initiated_counter, _shutdown_completed_counter
    global _shutdown_duration_histogram, _forced_exit_counter
    global _readiness_evaluations_counter

    _meter = None
    _shutdown_initiated_counter = None
    _shutdown_completed_counter = None
    _shutdown_duration_histogram = None
    _forced_exit_counter = None
    _readiness_evaluations_counter = None


__all__ = [
    "OTEL_METRICS_AVAILABLE",
    "record_shutdown_initiated",
    "record_shutdown_completed",
    "record_forced_exit",
    "record_readiness_evaluation",
    "reset_metrics",
]
