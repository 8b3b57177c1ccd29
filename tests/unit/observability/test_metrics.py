"""
Unit tests for shutdown and readiness metrics.

Tests for:
- Recorders are no-ops without a meter
- Counters and histograms against an in-memory reader
- Metrics emitted by the pipeline, the readiness coordinator and the binder
"""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from graceful_shutdown.binder import SignalBinder
from graceful_shutdown.observability import (
    ATTR_OUTCOME,
    ATTR_SIGNAL,
    record_forced_exit,
    record_readiness_evaluation,
    record_shutdown_completed,
    record_shutdown_initiated,
    reset_metrics,
)

# ============================================================================
# Metrics Helper Functions
# ============================================================================


def _find_metric(metrics_data: Any, metric_name: str) -> Any:
    if not metrics_data or not metrics_data.resource_metrics:
        return None

    for resource_metric in metrics_data.resource_metrics:
        for scope_metric in resource_metric.scope_metrics:
            for metric in scope_metric.metrics:
                if metric.name == metric_name:
                    return metric
    return None


def _get_metric_value(metrics_data: Any, metric_name: str) -> int:
    """Get the sum of a counter metric, or 0 if not found."""
    metric = _find_metric(metrics_data, metric_name)
    if metric is None:
        return 0
    return sum(dp.value for dp in metric.data.data_points)


def _get_metric_attributes(metrics_data: Any, metric_name: str) -> list[dict[str, Any]]:
    """Get the attributes of every data point of a metric."""
    metric = _find_metric(metrics_data, metric_name)
    if metric is None:
        return []
    return [dict(dp.attributes) for dp in metric.data.data_points]


class TestRecordersWithoutMeter:
    """Recorders must never fail, whatever the OpenTelemetry setup."""

    def test_recorders_do_not_raise(self):
        """All recorders can be called after a reset."""
        reset_metrics()

        record_shutdown_initiated("SIGTERM")
        record_shutdown_completed("clean", 0.5)
        record_forced_exit("SIGTERM")
        record_readiness_evaluation("ready")

        reset_metrics()


class TestRecorders:
    """Tests for the individual recorders."""

    def test_shutdown_initiated(self, metric_reader):
        """Initiated shutdowns are counted per signal."""
        record_shutdown_initiated("SIGTERM")
        record_shutdown_initiated("SIGTERM")

        data = metric_reader.get_metrics_data()

        assert _get_metric_value(data, "graceful_shutdown.shutdown.initiated_total") == 2
        assert _get_metric_attributes(data, "graceful_shutdown.shutdown.initiated_total") == [
            {ATTR_SIGNAL: "SIGTERM"}
        ]

    def test_shutdown_completed(self, metric_reader):
        """Completed shutdowns are counted and timed per outcome."""
        record_shutdown_completed("degraded", 1.5)

        data = metric_reader.get_metrics_data()

        assert _get_metric_value(data, "graceful_shutdown.shutdown.completed_total") == 1
        histogram = _find_metric(data, "graceful_shutdown.shutdown.duration_seconds")
        point = histogram.data.data_points[0]
        assert point.count == 1
        assert point.sum == 1.5
        assert dict(point.attributes) == {ATTR_OUTCOME: "degraded"}

    def test_forced_exit(self, metric_reader):
        """Forced exits are counted."""
        record_forced_exit("SIGINT")

        data = metric_reader.get_metrics_data()

        assert _get_metric_value(data, "graceful_shutdown.shutdown.forced_total") == 1

    def test_readiness_evaluations(self, metric_reader):
        """Readiness evaluations are counted per outcome."""
        record_readiness_evaluation("not_ready")
        record_readiness_evaluation("ready")

        data = metric_reader.get_metrics_data()
        attributes = _get_metric_attributes(data, "graceful_shutdown.readiness.evaluations_total")

        assert _get_metric_value(data, "graceful_shutdown.readiness.evaluations_total") == 2
        assert {ATTR_OUTCOME: "ready"} in attributes
        assert {ATTR_OUTCOME: "not_ready"} in attributes


class TestComponentMetrics:
    """Metrics emitted by the library components."""

    @pytest.mark.asyncio
    async def test_pipeline_records_shutdown(self, metric_reader, pipeline, listener):
        """A shutdown is counted from start to completion."""
        await pipeline.graceful_shutdown(listener, "SIGTERM", [])
        pipeline.cancel_exit()

        data = metric_reader.get_metrics_data()

        assert _get_metric_value(data, "graceful_shutdown.shutdown.initiated_total") == 1
        assert _get_metric_attributes(data, "graceful_shutdown.shutdown.completed_total") == [
            {ATTR_OUTCOME: "clean"}
        ]

    @pytest.mark.asyncio
    async def test_readiness_records_outcome(self, metric_reader, graceful):
        """Each non-cached readiness evaluation is counted."""

        def failing(listener):
            raise RuntimeError("down")

        graceful.add_readiness_check("failing", failing)
        await graceful.readiness()
        await graceful.readiness()

        data = metric_reader.get_metrics_data()

        assert _get_metric_value(data, "graceful_shutdown.readiness.evaluations_total") == 2
        assert _get_metric_attributes(
            data, "graceful_shutdown.readiness.evaluations_total"
        ) == [{ATTR_OUTCOME: "not_ready"}]

    @pytest.mark.asyncio
    async def test_binder_records_forced_exit(
        self, metric_reader, graceful, forced_exits, exit_recorder
    ):
        """A repeated signal is counted as forced exit."""
        binder = SignalBinder(graceful, force_exit=forced_exits)

        binder.handle_signal("SIGTERM")
        binder.handle_signal("SIGTERM")
        await asyncio.wait_for(exit_recorder.called.wait(), timeout=2.0)

        data = metric_reader.get_metrics_data()

        assert _get_metric_value(data, "graceful_shutdown.shutdown.forced_total") == 1
