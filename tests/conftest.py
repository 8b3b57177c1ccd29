"""
Shared pytest fixtures for the graceful_shutdown library tests.

This module provides:
- Listener fixtures (listener, slow_listener)
- Process exit fixtures (exit_recorder, forced_exits)
- Pipeline and controller fixtures with short grace periods
- OpenTelemetry metrics fixtures (metric_reader)

The grace period environment variable is removed for every test so that
the host environment cannot change configured durations.
"""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

import pytest

from graceful_shutdown.config import GRACE_PERIOD_ENV_VAR
from graceful_shutdown.controller import GracefulShutdown
from graceful_shutdown.killer import ShutdownPipeline
from graceful_shutdown.observability import MockTracer, metrics, reset_metrics
from graceful_shutdown.testing import ExitRecorder, FakeListener

# ============================================================================
# OpenTelemetry Metrics Availability Check
# ============================================================================

OTEL_METRICS_AVAILABLE = False
try:
    from opentelemetry.sdk.metrics import MeterProvider
    from opentelemetry.sdk.metrics.export import InMemoryMetricReader

    OTEL_METRICS_AVAILABLE = True
except ImportError:
    MeterProvider = None  # type: ignore[assignment, misc]
    InMemoryMetricReader = None  # type: ignore[assignment, misc]


skip_if_no_otel_metrics = pytest.mark.skipif(
    not OTEL_METRICS_AVAILABLE, reason="opentelemetry-sdk not installed"
)


# ============================================================================
# Environment
# ============================================================================


@pytest.fixture(autouse=True)
def clear_grace_period_override(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove the grace period override from the environment."""
    monkeypatch.delenv(GRACE_PERIOD_ENV_VAR, raising=False)


# ============================================================================
# Listener and Exit Fixtures
# ============================================================================


@pytest.fixture
def listener() -> FakeListener:
    """
    Provide a listener that drains immediately.

    Returns:
        A FakeListener with no drain delay.
    """
    return FakeListener()


@pytest.fixture
def exit_recorder() -> ExitRecorder:
    """
    Provide an exit function that records codes instead of exiting.

    Returns:
        A fresh ExitRecorder.
    """
    return ExitRecorder()


@pytest.fixture
def forced_exits() -> ExitRecorder:
    """Provide a recorder standing in for os._exit on forced exits."""
    return ExitRecorder()


@pytest.fixture
def tracer() -> MockTracer:
    """Provide a tracer recording span names and attributes."""
    return MockTracer()


@pytest.fixture
def pipeline(exit_recorder: ExitRecorder, tracer: MockTracer) -> ShutdownPipeline:
    """
    Provide a pipeline with a short grace period and exit delay.

    Process exit is routed to the exit_recorder fixture.
    """
    return ShutdownPipeline(
        grace_period_seconds=0.05,
        exit_delay_seconds=0.01,
        exit_func=exit_recorder,
        tracer=tracer,
    )


@pytest.fixture
def graceful(listener: FakeListener, pipeline: ShutdownPipeline) -> GracefulShutdown:
    """Provide a controller wired to the fake listener and the short pipeline."""
    return GracefulShutdown(listener, pipeline=pipeline, enable_tracing=False)


# ============================================================================
# OpenTelemetry Metrics Fixtures
# ============================================================================


@pytest.fixture
def metric_reader() -> Generator[Any, None, None]:
    """
    Provide an InMemoryMetricReader for testing metrics.

    Creates a fresh metric reader and meter provider for each test and
    points the library's lazily created meter at it, so instruments are
    recreated against the test provider.

    Yields:
        InMemoryMetricReader: Reader for inspecting collected metrics.
    """
    if not OTEL_METRICS_AVAILABLE:
        pytest.skip("opentelemetry-sdk not installed")

    reader = InMemoryMetricReader()
    provider = MeterProvider(metric_readers=[reader])

    reset_metrics()
    metrics._meter = provider.get_meter("graceful_shutdown")

    yield reader

    reset_metrics()
    provider.shutdown()
