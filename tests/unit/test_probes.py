"""
Unit tests for probe responses and library exceptions.
"""

import pytest

from graceful_shutdown.exceptions import (
    AlreadyEnabledError,
    AlreadyEvaluatingError,
    FinalizerFailedError,
    GracefulShutdownError,
    InvalidCallbackError,
    InvalidConfigurationError,
    ReadinessCheckFailedError,
    TerminatingError,
)
from graceful_shutdown.probes import LIVE, NOT_READY, READY, ProbeResponse


class TestProbeResponse:
    """Tests for ProbeResponse constants."""

    def test_live(self):
        """Liveness answers 200 OK."""
        assert (LIVE.status_code, LIVE.body) == (200, "OK")
        assert LIVE.ok

    def test_ready(self):
        """Readiness answers 200 READY."""
        assert (READY.status_code, READY.body) == (200, "READY")
        assert READY.ok

    def test_not_ready(self):
        """Unreadiness answers 503 NOT-READY."""
        assert (NOT_READY.status_code, NOT_READY.body) == (503, "NOT-READY")
        assert not NOT_READY.ok

    def test_to_dict(self):
        """Responses serialize to plain values."""
        assert ProbeResponse(503, "NOT-READY").to_dict() == {
            "status_code": 503,
            "body": "NOT-READY",
        }


class TestExceptions:
    """Tests for the exception hierarchy."""

    @pytest.mark.parametrize(
        "error",
        [
            InvalidConfigurationError("bad"),
            InvalidCallbackError("bad", name="x"),
            AlreadyEnabledError(),
            AlreadyEvaluatingError(),
            TerminatingError("SIGTERM"),
            ReadinessCheckFailedError("db", RuntimeError("down")),
            FinalizerFailedError("pool", RuntimeError("stuck")),
        ],
    )
    def test_all_inherit_from_base(self, error):
        """Every library error is a GracefulShutdownError."""
        assert isinstance(error, GracefulShutdownError)

    def test_messages(self):
        """Messages name the failing component."""
        assert str(AlreadyEnabledError()) == "server graceful shutdown already enabled"
        assert str(AlreadyEvaluatingError()) == "already checking readiness"
        assert str(ReadinessCheckFailedError("db", RuntimeError("down"))) == (
            "Readiness check 'db' failed: down"
        )
        assert "SIGTERM" in str(TerminatingError("SIGTERM"))

    def test_builtin_bases(self):
        """Configuration and callback errors keep their builtin categories."""
        assert isinstance(InvalidConfigurationError("x"), ValueError)
        assert isinstance(InvalidCallbackError("x"), TypeError)
