"""
Observability utilities for graceful_shutdown.

This module provides tracing, metrics, and standard attribute definitions.
OpenTelemetry is an optional dependency; every utility here degrades to a
no-op when it is not installed.

Example:
    >>> from graceful_shutdown.observability import create_tracer
    >>> tracer = create_tracer(__name__, enable_tracing=True)
    >>> with tracer.span("graceful_shutdown.pipeline"):
    ...     pass
"""

from graceful_shutdown.observability.attributes import (
    ATTR_CALLBACK_COUNT,
    ATTR_CALLBACK_NAME,
    ATTR_ERROR_TYPE,
    ATTR_EXIT_CODE,
    ATTR_GRACE_PERIOD_MS,
    ATTR_OUTCOME,
    ATTR_PHASE,
    ATTR_SIGNAL,
)
from graceful_shutdown.observability.metrics import (
    OTEL_METRICS_AVAILABLE,
    record_forced_exit,
    record_readiness_evaluation,
    record_shutdown_completed,
    record_shutdown_initiated,
    reset_metrics,
)
from graceful_shutdown.observability.tracer import (
    OTEL_AVAILABLE,
    MockTracer,
    NullTracer,
    OpenTelemetryTracer,
    Tracer,
    create_tracer,
)

__all__ = [
    # Availability flags
    "OTEL_AVAILABLE",
    "OTEL_METRICS_AVAILABLE",
    # Tracing
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "MockTracer",
    "create_tracer",
    # Metrics
    "record_shutdown_initiated",
    "record_shutdown_completed",
    "record_forced_exit",
    "record_readiness_evaluation",
    "reset_metrics",
    # Attributes
    "ATTR_SIGNAL",
    "ATTR_EXIT_CODE",
    "ATTR_PHASE",
    "ATTR_GRACE_PERIOD_MS",
    "ATTR_CALLBACK_COUNT",
    "ATTR_CALLBACK_NAME",
    "ATTR_OUTCOME",
    "ATTR_ERROR_TYPE",
]
