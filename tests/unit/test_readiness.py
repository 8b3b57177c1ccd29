"""
Unit tests for single-flight readiness evaluation.

Tests for:
- Caching of the READY state
- Rejection of concurrent evaluations
- Rejection during termination
- Retry after failed checks
"""

import asyncio

import pytest

from graceful_shutdown.callbacks import ReadinessRegistry
from graceful_shutdown.exceptions import (
    AlreadyEvaluatingError,
    ReadinessCheckFailedError,
    TerminatingError,
)
from graceful_shutdown.observability import MockTracer
from graceful_shutdown.readiness import ReadinessCoordinator
from graceful_shutdown.state import LifecycleState, ReadinessState


@pytest.fixture
def registry():
    return ReadinessRegistry()


@pytest.fixture
def state():
    return LifecycleState()


@pytest.fixture
def coordinator(registry, state, tracer):
    return ReadinessCoordinator(registry, state, tracer=tracer)


class TestEvaluate:
    """Tests for ReadinessCoordinator.evaluate()."""

    @pytest.mark.asyncio
    async def test_no_checks_is_ready(self, coordinator, state, listener):
        """Zero checks make the server ready."""
        await coordinator.evaluate(listener)
        assert state.readiness is ReadinessState.READY

    @pytest.mark.asyncio
    async def test_checks_receive_listener(self, coordinator, registry, listener):
        """Every check is called with the listener."""
        received = []
        registry.add("a", received.append)
        registry.add("b", received.append)

        await coordinator.evaluate(listener)

        assert received == [listener, listener]

    @pytest.mark.asyncio
    async def test_ready_state_is_cached(self, coordinator, registry, listener):
        """Checks run once; later evaluations return immediately."""
        calls = []
        registry.add("counted", calls.append)

        for _ in range(5):
            await coordinator.evaluate(listener)

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_failed_check_raises(self, coordinator, registry, state, listener):
        """A failing check raises and leaves the state retryable."""

        def database(listener):
            raise ConnectionError("database unreachable")

        registry.add("database", database)

        with pytest.raises(ReadinessCheckFailedError) as exc_info:
            await coordinator.evaluate(listener)

        assert exc_info.value.name == "database"
        assert isinstance(exc_info.value.cause, ConnectionError)
        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert state.readiness is ReadinessState.NOT_CHECKED

    @pytest.mark.asyncio
    async def test_retry_after_failure(self, coordinator, registry, state, listener):
        """A later evaluation reruns the checks until they succeed."""
        attempts = []

        def flaky(listener):
            attempts.append(1)
            if len(attempts) < 3:
                raise RuntimeError("not yet")

        registry.add("flaky", flaky)

        for _ in range(2):
            with pytest.raises(ReadinessCheckFailedError):
                await coordinator.evaluate(listener)

        await coordinator.evaluate(listener)
        await coordinator.evaluate(listener)

        assert len(attempts) == 3
        assert state.is_ready

    @pytest.mark.asyncio
    async def test_all_checks_run_when_one_fails(self, coordinator, registry, listener):
        """A failing check does not prevent the others from running."""
        ran = []

        def fail(listener):
            raise RuntimeError("fail")

        async def slow(listener):
            await asyncio.sleep(0.01)
            ran.append("slow")

        registry.add("fail", fail)
        registry.add("slow", slow)

        with pytest.raises(ReadinessCheckFailedError):
            await coordinator.evaluate(listener)

        assert ran == ["slow"]

    @pytest.mark.asyncio
    async def test_concurrent_evaluation_is_rejected(self, coordinator, registry, listener):
        """A second evaluation while one is in flight fails immediately."""
        started = asyncio.Event()
        release = asyncio.Event()
        calls = []

        async def gated(listener):
            calls.append(1)
            started.set()
            await release.wait()

        registry.add("gated", gated)

        first = asyncio.create_task(coordinator.evaluate(listener))
        await started.wait()

        with pytest.raises(AlreadyEvaluatingError):
            await coordinator.evaluate(listener)

        release.set()
        await first

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_terminating_rejects_evaluation(self, coordinator, registry, state, listener):
        """No evaluation happens once termination has begun."""
        calls = []
        registry.add("counted", calls.append)
        state.begin_termination("SIGTERM")

        with pytest.raises(TerminatingError) as exc_info:
            await coordinator.evaluate(listener)

        assert exc_info.value.signal == "SIGTERM"
        assert calls == []

    @pytest.mark.asyncio
    async def test_terminating_wins_over_ready(self, coordinator, state, listener):
        """Termination is reported even after READY was reached."""
        await coordinator.evaluate(listener)
        state.begin_termination("SIGTERM")

        with pytest.raises(TerminatingError):
            await coordinator.evaluate(listener)

    @pytest.mark.asyncio
    async def test_checks_memoized_on_first_evaluation(self, coordinator, registry, listener):
        """Checks registered after the first evaluation are not picked up."""
        late = []

        def fail_once(listener):
            if not late:
                late.append("failed")
                raise RuntimeError("first attempt")

        registry.add("fail_once", fail_once)
        assert coordinator.checks is None

        with pytest.raises(ReadinessCheckFailedError):
            await coordinator.evaluate(listener)

        registry.add("late", lambda listener: late.append("late ran"))
        await coordinator.evaluate(listener)

        assert [entry.name for entry in coordinator.checks] == ["fail_once"]
        assert late == ["failed"]


class TestEvaluateObservability:
    """Tests for readiness spans."""

    @pytest.mark.asyncio
    async def test_creates_span(self, coordinator, tracer, listener):
        """Each evaluation opens a span."""
        await coordinator.evaluate(listener)
        assert tracer.span_names == ["graceful_shutdown.readiness.evaluate"]

    @pytest.mark.asyncio
    async def test_cached_evaluation_has_no_span(self, coordinator, tracer, listener):
        """Cached READY returns without tracing."""
        await coordinator.evaluate(listener)
        tracer.clear()

        await coordinator.evaluate(listener)

        assert tracer.spans == []

    def test_default_tracer_when_disabled(self, registry, state):
        """Disabling tracing yields a disabled tracer."""
        coordinator = ReadinessCoordinator(registry, state, enable_tracing=False)
        assert not coordinator._tracer.enabled

    def test_explicit_tracer(self, registry, state):
        """A provided tracer is used as is."""
        tracer = MockTracer()
        assert ReadinessCoordinator(registry, state, tracer=tracer)._tracer is tracer
