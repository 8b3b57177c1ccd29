"""
Standard span and metric attributes for graceful_shutdown.

Attribute names are shared by spans and metrics so that a shutdown can be
followed across both.

Example:
    >>> with tracer.span(
    ...     "graceful_shutdown.pipeline",
    ...     {ATTR_SIGNAL: "SIGTERM", ATTR_GRACE_PERIOD_MS: 5000},
    ... ):
    ...     pass
"""

ATTR_SIGNAL = "graceful_shutdown.signal"
"""Name of the signal that triggered the shutdown (e.g., 'SIGTERM')."""

ATTR_EXIT_CODE = "graceful_shutdown.exit_code"
"""Process exit code scheduled by the pipeline (integer)."""

ATTR_PHASE = "graceful_shutdown.phase"
"""Shutdown pipeline phase (e.g., 'draining')."""

ATTR_GRACE_PERIOD_MS = "graceful_shutdown.grace_period_ms"
"""Configured grace period in milliseconds (integer)."""

ATTR_CALLBACK_COUNT = "graceful_shutdown.callback.count"
"""Number of finalizers or readiness checks in a fan-out (integer)."""

ATTR_CALLBACK_NAME = "graceful_shutdown.callback.name"
"""Name of the failing finalizer or readiness check."""

ATTR_OUTCOME = "graceful_shutdown.outcome"
"""Outcome label: 'clean', 'degraded', 'ready', 'not_ready'."""

ATTR_ERROR_TYPE = "error.type"
"""Exception class name (OTEL semantic convention)."""


__all__ = [
    "ATTR_SIGNAL",
    "ATTR_EXIT_CODE",
    "ATTR_PHASE",
    "ATTR_GRACE_PERIOD_MS",
    "ATTR_CALLBACK_COUNT",
    "ATTR_CALLBACK_NAME",
    "ATTR_OUTCOME",
    "ATTR_ERROR_TYPE",
]
