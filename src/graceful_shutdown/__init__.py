"""
graceful_shutdown - Graceful termination for asyncio servers in orchestrated environments.

This library provides:
- Liveness and readiness probes for Kubernetes-style health checking
- Single-flight readiness checks, cached once they succeed
- A four-phase shutdown pipeline: grace period, connection drain,
  finalizers, process exit
- Signal handling where a second signal forces immediate exit
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("graceful-shutdown-py")
except PackageNotFoundError:
    # Package not installed (running from source without install)
    __version__ = "0.0.0.dev0"

from graceful_shutdown.binder import SignalBinder, enable
from graceful_shutdown.callbacks import (
    CallbackRegistry,
    FinalizerRegistry,
    NamedCallback,
    ReadinessRegistry,
)
from graceful_shutdown.config import (
    GRACE_PERIOD_ENV_VAR,
    ShutdownOptions,
    read_grace_period_override,
)
from graceful_shutdown.controller import GracefulShutdown
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
from graceful_shutdown.killer import (
    PROCESS_EXIT_DELAY_SECONDS,
    ShutdownPhase,
    ShutdownPipeline,
    ShutdownResult,
)
from graceful_shutdown.listener import ListenerHandle, ServerListener
from graceful_shutdown.probes import LIVE, NOT_READY, READY, ProbeResponse
from graceful_shutdown.readiness import ReadinessCoordinator
from graceful_shutdown.signals import FORCED_EXIT_CODE, code_number, exit_code, resolve_signal
from graceful_shutdown.state import LifecyclePhase, LifecycleState, ReadinessState

__all__ = [
    "__version__",
    # Entry points
    "enable",
    "GracefulShutdown",
    "SignalBinder",
    # Configuration
    "ShutdownOptions",
    "GRACE_PERIOD_ENV_VAR",
    "read_grace_period_override",
    # Callbacks
    "NamedCallback",
    "CallbackRegistry",
    "FinalizerRegistry",
    "ReadinessRegistry",
    # Readiness
    "ReadinessCoordinator",
    # Pipeline
    "ShutdownPipeline",
    "ShutdownPhase",
    "ShutdownResult",
    "PROCESS_EXIT_DELAY_SECONDS",
    # Listener
    "ListenerHandle",
    "ServerListener",
    # Probes
    "ProbeResponse",
    "LIVE",
    "READY",
    "NOT_READY",
    # State
    "LifecycleState",
    "LifecyclePhase",
    "ReadinessState",
    # Signals
    "code_number",
    "exit_code",
    "resolve_signal",
    "FORCED_EXIT_CODE",
    # Exceptions
    "GracefulShutdownError",
    "InvalidConfigurationError",
    "InvalidCallbackError",
    "AlreadyEnabledError",
    "AlreadyEvaluatingError",
    "TerminatingError",
    "ReadinessCheckFailedError",
    "FinalizerFailedError",
]
