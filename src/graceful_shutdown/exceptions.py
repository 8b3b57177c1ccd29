"""
Library exceptions for the graceful_shutdown package.

All exceptions inherit from GracefulShutdownError for easy catching.
Configuration and registration errors are raised synchronously to the
caller. Runtime errors raised during shutdown are logged and recorded,
never propagated past the exit phase.
"""

from __future__ import annotations


class GracefulShutdownError(Exception):
    """Base exception for graceful_shutdown library."""

    pass


class InvalidConfigurationError(GracefulShutdownError, ValueError):
    """Raised when shutdown options are malformed."""

    pass


class InvalidCallbackError(GracefulShutdownError, TypeError):
    """Raised when a finalizer or readiness check cannot be registered."""

    def __init__(self, message: str, name: object = None) -> None:
        self.name = name
        super().__init__(message)


class AlreadyEnabledError(GracefulShutdownError):
    """Raised when graceful shutdown is enabled twice on the same listener."""

    def __init__(self) -> None:
        super().__init__("server graceful shutdown already enabled")


class AlreadyEvaluatingError(GracefulShutdownError):
    """Raised when a readiness evaluation is requested while one is in flight."""

    def __init__(self) -> None:
        super().__init__("already checking readiness")


class TerminatingError(GracefulShutdownError):
    """Raised when readiness is evaluated after termination has begun."""

    def __init__(self, signal: str | None) -> None:
        self.signal = signal
        super().__init__(f"server is terminating (signal: {signal})")


class ReadinessCheckFailedError(GracefulShutdownError):
    """Raised when at least one readiness check fails."""

    def __init__(self, name: str, cause: BaseException) -> None:
        self.name = name
        self.cause = cause
        super().__init__(f"Readiness check '{name}' failed: {cause}")


class FinalizerFailedError(GracefulShutdownError):
    """
    Describes a finalizer failure during shutdown.

    The pipeline never raises this; it is logged and reported on the
    ShutdownResult so that process exit is always reached.
    """

    def __init__(self, name: str, cause: BaseException) -> None:
        self.name = name
        self.cause = cause
        super().__init__(f"Finalizer '{name}' failed: {cause}")


__all__ = [
    "GracefulShutdownError",
    "InvalidConfigurationError",
    "InvalidCallbackError",
    "AlreadyEnabledError",
    "AlreadyEvaluatingError",
    "TerminatingError",
    "ReadinessCheckFailedError",
    "FinalizerFailedError",
]
