"""
Signal handling for graceful shutdown.

The first configured signal moves the lifecycle state to TERMINATING
synchronously, so readiness probes report NOT-READY at once, then starts
the shutdown sequence after the configured delay. Any further signal
while terminating forces the process down immediately with exit code 129,
without waiting for the running sequence.

Example:
    >>> server = await asyncio.start_server(handle_client, port=8080)
    >>> graceful = enable(ServerListener(server), {"signals": ["TERM", "INT"]})
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from graceful_shutdown.config import ShutdownOptions
from graceful_shutdown.controller import GracefulShutdown
from graceful_shutdown.exceptions import AlreadyEnabledError, InvalidConfigurationError
from graceful_shutdown.killer import ShutdownResult
from graceful_shutdown.listener import ListenerHandle, mark_shutdown_enabled
from graceful_shutdown.observability import record_forced_exit
from graceful_shutdown.signals import FORCED_EXIT_CODE, normalize_signal_name, resolve_signal

logger = logging.getLogger(__name__)

ForceExitFunc = Callable[[int], Any]


def _ready_to_die(result: ShutdownResult) -> None:
    logger.info("ready to die...", extra={"exit_code": result.exit_code, "clean": result.clean})


class SignalBinder:
    """
    Installs OS signal handlers driving a GracefulShutdown controller.

    Attributes:
        graceful: Controller to terminate
        signals: Names of the handled signals
    """

    def __init__(
        self,
        graceful: GracefulShutdown,
        signals: Sequence[str] | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
        force_exit: ForceExitFunc = os._exit,
    ) -> None:
        """
        Initialize the binder.

        Args:
            graceful: Controller to terminate on the first signal
            signals: Signal names to handle. Defaults to the controller's options.
            loop: Event loop to install handlers on. Defaults to the running loop
                at install time.
            force_exit: Called with the exit code when a second signal arrives

        Raises:
            InvalidConfigurationError: If a signal name is unknown on this platform
        """
        self.graceful = graceful
        self.signals = tuple(
            normalize_signal_name(name) for name in (signals or graceful.options.signals)
        )
        self._signums = tuple(resolve_signal(name) for name in self.signals)
        self._loop = loop
        self._force_exit = force_exit
        self._installed: list[signal.Signals] = []
        self._tasks: set[asyncio.Task[ShutdownResult]] = set()

    @property
    def installed(self) -> bool:
        return bool(self._installed)

    @property
    def pending_tasks(self) -> set[asyncio.Task[ShutdownResult]]:
        """Termination tasks started by this binder that have not finished."""
        return set(self._tasks)

    def install(self) -> None:
        """
        Register a handler for every configured signal.

        Handlers registered before a failing registration are removed again.
        """
        if self._installed:
            logger.warning("Signal handlers already registered")
            return

        loop = self._loop = self._loop or asyncio.get_running_loop()

        for name, sig in zip(self.signals, self._signums, strict=True):
            try:
                loop.add_signal_handler(sig, self.handle_signal, name)
            except NotImplementedError:
                # Windows doesn't fully support add_signal_handler
                logger.warning(
                    "Signal handling not fully supported on this platform",
                    extra={"signal": name},
                )
                continue
            except (RuntimeError, ValueError):
                self.uninstall()
                raise

            self._installed.append(sig)
            logger.debug("Registered signal handler", extra={"signal": name})

        logger.info("Shutdown signal handlers registered", extra={"signals": list(self.signals)})

    def uninstall(self) -> None:
        """Remove the registered signal handlers."""
        if not self._installed or self._loop is None:
            return

        for sig in self._installed:
            try:
                self._loop.remove_signal_handler(sig)
            except (NotImplementedError, ValueError):
                pass

        self._installed.clear()
        logger.info("Shutdown signal handlers unregistered")

    def handle_signal(self, signal_name: str) -> None:
        """
        Handle a termination signal.

        On the first signal, records TERMINATING synchronously and schedules
        the shutdown sequence after the configured delay. On any later
        signal, forces the process to exit.

        Args:
            signal_name: Name of the received signal
        """
        state = self.graceful.state

        if state.is_terminating:
            logger.warning(
                "force exit",
                extra={"signal": signal_name, "terminated_by": state.terminated_by},
            )
            record_forced_exit(signal_name)
            self._force_exit(FORCED_EXIT_CODE)
            return

        state.begin_termination(signal_name)
        logger.info(
            "Received shutdown signal, initiating graceful shutdown",
            extra={"signal": signal_name, "delay_seconds": self.graceful.delay_seconds},
        )

        loop = self._loop or asyncio.get_running_loop()
        loop.call_later(self.graceful.delay_seconds, self._start_termination, signal_name)

    def _start_termination(self, signal_name: str) -> None:
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(self.graceful.terminate(signal_name, on_done=_ready_to_die))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


def enable(
    listener: ListenerHandle,
    options: ShutdownOptions | Mapping[str, Any] | None = None,
    graceful_shutdown: GracefulShutdown | None = None,
    *,
    loop: asyncio.AbstractEventLoop | None = None,
    force_exit: ForceExitFunc = os._exit,
) -> GracefulShutdown:
    """
    Enable graceful shutdown for a listener.

    Must be called with a running event loop unless ``loop`` is given.

    Args:
        listener: Listener handle to drain at shutdown
        options: Shutdown options; ignored for everything but ``signals``
            when ``graceful_shutdown`` is given
        graceful_shutdown: Existing controller to use instead of a new one
        loop: Event loop to install signal handlers on
        force_exit: Called with the exit code when a second signal arrives

    Returns:
        The GracefulShutdown controller driven by the signal handlers

    Raises:
        AlreadyEnabledError: If graceful shutdown is already enabled on the listener
        InvalidConfigurationError: If options or graceful_shutdown are invalid, or
            graceful_shutdown drains a different listener
    """
    if graceful_shutdown is not None and not isinstance(graceful_shutdown, GracefulShutdown):
        raise InvalidConfigurationError(
            "provided graceful_shutdown argument is no instance of GracefulShutdown"
        )

    if graceful_shutdown is not None and graceful_shutdown.listener is not listener:
        raise InvalidConfigurationError(
            "provided listener is not the listener of the graceful_shutdown argument"
        )

    if listener.shutdown_enabled:
        raise AlreadyEnabledError()

    signals: Sequence[str] | None = None
    if graceful_shutdown is None:
        graceful_shutdown = GracefulShutdown(listener, options)
    elif options is not None:
        signals = ShutdownOptions.create(options).signals

    # nothing is registered or marked until every option has been validated
    binder = SignalBinder(graceful_shutdown, signals=signals, loop=loop, force_exit=force_exit)
    binder.install()
    mark_shutdown_enabled(listener)
    return graceful_shutdown


__all__ = [
    "SignalBinder",
    "enable",
]
